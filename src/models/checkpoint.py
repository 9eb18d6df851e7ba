"""Data models for the traversal checkpoint."""

from pydantic import BaseModel, Field, ConfigDict


class CheckpointConfig(BaseModel):
    """Checkpoint persistence configuration"""

    model_config = ConfigDict(protected_namespaces=())

    enabled: bool = True
    state_dir: str = "./state"
    state_key: str = Field("nightly_step", min_length=1)


class Checkpoint(BaseModel):
    """Position of the next page to warm.

    Every page before ``page_index`` in (``manga_index``, ``chapter_index``)
    has already been warmed in the current pass.
    """

    model_config = ConfigDict(
        protected_namespaces=(), populate_by_name=True, frozen=True
    )

    manga_index: int = Field(0, ge=0, alias="mIdx")
    chapter_index: int = Field(1, ge=1, alias="cIdx")
    page_index: int = Field(0, ge=0, alias="pIdx")

    @classmethod
    def initial(cls) -> "Checkpoint":
        """Start of a fresh pass over the catalog"""
        return cls(manga_index=0, chapter_index=1, page_index=0)

    @property
    def is_initial(self) -> bool:
        return self == Checkpoint.initial()

    def to_json(self) -> str:
        """Serialize as the compact ``{mIdx, cIdx, pIdx}`` record"""
        return self.model_dump_json(by_alias=True)

    def as_tuple(self) -> tuple:
        return (self.manga_index, self.chapter_index, self.page_index)
