def test_single_resource():
    from ..crud.hal import Resource

    resource = Resource({"name": "x"}, "/items/1")

    assert resource.href == "/items/1"
    assert resource.to_dict() == {"_links": {"self": {"href": "/items/1"}}, "name": "x"}


def test_links_render_before_payload():
    from ..crud.hal import Resource

    rendered = Resource({"b": 1, "a": 2}, "/x").to_dict()
    assert list(rendered) == ["_links", "b", "a"]


def test_repeated_relation_renders_list():
    from ..crud.hal import Resource

    resource = Resource({}, "/x")
    resource.link("alternate", "/y").link("alternate", "/z", title="Z")

    assert resource.to_dict()["_links"]["alternate"] == [
        {"href": "/y"},
        {"href": "/z", "title": "Z"},
    ]


def test_embedding():
    from ..crud.hal import Resource

    parent = Resource({"_page": 1}, "/items")
    parent.embed("items", [Resource({"n": 1}, "/items/1"), Resource({"n": 2}, "/items/2")])
    parent.embed("owner", Resource({"n": 3}, "/users/3"))
    parent.embed("tags", Resource({}, "/tags/1"), pluralize=True)

    embedded = parent.to_dict()["_embedded"]
    assert [i["n"] for i in embedded["items"]] == [1, 2]
    assert embedded["owner"] == {"_links": {"self": {"href": "/users/3"}}, "n": 3}
    assert embedded["tags"] == [{"_links": {"self": {"href": "/tags/1"}}}]


def test_empty_embedded_collection_is_kept():
    from ..crud.hal import Resource

    assert Resource({}, "/x").embed("items", []).to_dict()["_embedded"] == {"items": []}
