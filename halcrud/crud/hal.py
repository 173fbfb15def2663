"""
Minimal HAL (Hypertext Application Language) resource builder.

.. code-block:: python

   item = Resource({"name": "x"}, "/items/1")
   page = Resource({"_page": 1}, "/items")
   page.link("next", "/items?page=2")
   page.embed("items", [item])
   page.to_dict()
   # {"_links": {"self": {"href": "/items"}, "next": {"href": "/items?page=2"}},
   #  "_page": 1,
   #  "_embedded": {"items": [{"_links": {"self": {"href": "/items/1"}}, "name": "x"}]}}
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Mapping, Sequence

HAL_MEDIA_TYPE = "application/hal+json"


class Resource:
    def __init__(self, payload: Mapping[str, Any] | None, href: str) -> None:
        self.payload: dict[str, Any] = dict(payload or {})
        self.links: "OrderedDict[str, list[dict[str, Any]]]" = OrderedDict()
        self.embedded: "OrderedDict[str, list[Resource] | Resource]" = OrderedDict()
        self.link("self", href)

    @property
    def href(self) -> str:
        return self.links["self"][0]["href"]

    def link(self, rel: str, href: str, **attrs: Any) -> "Resource":
        self.links.setdefault(rel, []).append({"href": href, **attrs})
        return self

    def embed(self, rel: str, resources: "Resource | Sequence[Resource]", pluralize: bool = False) -> "Resource":
        """
        Embed one resource or a list of resources under `rel`.

        Lists always render as JSON arrays. A single resource renders as an
        object unless `pluralize` is set.
        """
        if isinstance(resources, Resource):
            self.embedded[rel] = [resources] if pluralize else resources
        else:
            self.embedded[rel] = list(resources)
        return self

    def to_dict(self) -> dict[str, Any]:
        rendered: dict[str, Any] = {
            "_links": {
                rel: (items[0] if len(items) == 1 else list(items))
                for rel, items in self.links.items()
            }
        }
        rendered.update(self.payload)
        if self.embedded:
            rendered["_embedded"] = {
                rel: ([r.to_dict() for r in value] if isinstance(value, list) else value.to_dict())
                for rel, value in self.embedded.items()
            }
        return rendered

    def __repr__(self) -> str:
        return f"Resource(href={self.href!r}, fields={sorted(self.payload)!r})"
