"""
WebFinger result models.

A WebFingerResult keeps the raw JRD exactly as the server sent it, alongside an
index of the links whose relation is known, grouped by relation category.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LinkObject(BaseModel):
    """
    A single JRD link, with every value coerced to a string.

    Fields other than href, rel and type are kept as extra attributes, e.g.
    ``link.template`` or ``link.model_extra["titles"]``.
    """

    model_config = ConfigDict(extra="allow")

    href: str
    rel: str
    type: Optional[str] = None


class IndexProperties(BaseModel):
    name: Optional[str] = None


class ResultIndex(BaseModel):
    """
    Indexed view of a JRD.

    ``links`` always holds one entry per relation category, possibly empty.
    """

    links: Dict[str, List[LinkObject]]
    properties: IndexProperties = Field(default_factory=IndexProperties)


class WebFingerResult(BaseModel):
    """Outcome of a successful lookup: the raw JRD and its index."""

    raw: Dict[str, Any]
    index: ResultIndex
