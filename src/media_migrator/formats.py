"""
Models for the ``formats`` column of ``public.files``.

The column holds a JSON object with the primary ``url`` and four pre-generated
variants (large, small, medium, thumbnail). Decoding is deliberately forgiving:
a value that cannot be decoded leaves the corresponding field at its default
instead of rejecting the whole record, so a damaged row still gets its URLs
repointed.
"""
import json
from typing import Any, Dict, Iterator, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_serializer, model_validator

from media_migrator.urls import object_url

VARIANTS = ("large", "small", "medium", "thumbnail")


def _drop_nulls(data: Any) -> Any:
    # JSON null decodes to the field default
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v is not None}
    return data


class Format(BaseModel):
    # Strict: "12" is a type error, not 12
    url: str = Field("", strict=True)
    ext: str = Field("", strict=True)
    hash: str = Field("", strict=True)
    mime: str = Field("", strict=True)
    name: str = Field("", strict=True)
    path: str = Field("", strict=True)
    size: float = Field(0, strict=True)
    width: int = Field(0, strict=True)
    height: int = Field(0, strict=True)

    @model_validator(mode="before")
    @classmethod
    def null_as_default(cls, data: Any) -> Any:
        return _drop_nulls(data)

    @field_serializer("size")
    def whole_size_as_int(self, size: float):
        if float(size).is_integer():
            return int(size)
        return size


class FileFormats(BaseModel):
    url: str = Field("", strict=True)
    large: Format = Field(default_factory=Format)
    small: Format = Field(default_factory=Format)
    medium: Format = Field(default_factory=Format)
    thumbnail: Format = Field(default_factory=Format)

    @model_validator(mode="before")
    @classmethod
    def null_as_default(cls, data: Any) -> Any:
        return _drop_nulls(data)

    def variants(self) -> Iterator[Format]:
        for name in VARIANTS:
            yield getattr(self, name)

    def rewrite(self, object_key: str, endpoint: str, bucket: str) -> None:
        """Point the primary URL at ``object_key`` and every variant URL at the bucket."""
        self.url = object_url(object_key, endpoint, bucket)
        for variant in self.variants():
            variant.url = object_url(variant.url, endpoint, bucket)

    def to_text(self) -> str:
        return self.model_dump_json()


def _prune(data: Dict[str, Any], exc: ValidationError) -> None:
    for error in exc.errors():
        loc = error.get("loc", ())
        if not loc:
            continue
        node = data
        for key in loc[:-1]:
            node = node.get(key) if isinstance(node, dict) else None
            if node is None:
                break
        if isinstance(node, dict):
            node.pop(loc[-1], None)


def parse_formats(text: Optional[str]) -> Tuple[FileFormats, Optional[Exception]]:
    """
    Decode the stored ``formats`` text.

    Always returns a usable ``FileFormats``; the second element is the decode
    error, if any. Invalid JSON, NULL or a non-object value yield all defaults.
    Fields with the wrong type are reset to their default and the rest of the
    object is kept.
    """
    if text is None:
        return FileFormats(), ValueError("formats is NULL")

    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        return FileFormats(), e

    if not isinstance(data, dict):
        return FileFormats(), ValueError(f"formats must be a JSON object, got {type(data).__name__}")

    first_error: Optional[ValidationError] = None
    for _ in range(3):
        try:
            return FileFormats.model_validate(data), first_error
        except ValidationError as exc:
            first_error = first_error or exc
            _prune(data, exc)

    return FileFormats(), first_error
