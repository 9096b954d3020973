import pytest

from news_engine.adapters.sqlite.migrator import SQLiteMigrator
from news_engine.adapters.sqlite.properties import SQLitePropertyStore
from news_engine.domain.entities import PropertyItem
from news_engine.domain.errors import Conflict, NotFound


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "test.db")


@pytest.fixture
def store(db_path):
    SQLiteMigrator(db_path, "migrations").run_migrations()
    return SQLitePropertyStore(db_path)


def page(object_id: str, **properties: str) -> PropertyItem:
    return PropertyItem(
        key="news",
        object_type="newsPage",
        object_id=object_id,
        space_id="newsroom",
        creator_id="john",
        properties=dict(properties),
    )


def test_create_and_get(store):
    created = store.create_item(page("a1", publicationState="posted", published="true"))

    fetched = store.get_item("news", "newsPage", "a1")
    assert fetched is not None
    assert fetched.id == created.id
    assert fetched.space_id == "newsroom"
    assert fetched.creator_id == "john"
    assert fetched.properties == {"publicationState": "posted", "published": "true"}


def test_get_missing(store):
    assert store.get_item("news", "newsPage", "missing") is None


def test_unique_key(store):
    store.create_item(page("a1"))
    with pytest.raises(Conflict):
        store.create_item(page("a1"))


def test_same_object_different_parent(store):
    marker = PropertyItem(key="news", object_type="newsPageVersion", object_id="a1")
    fr = PropertyItem(key="news", object_type="newsPageVersion", object_id="a1", parent_id="fr")

    store.create_item(marker)
    store.create_item(fr)

    assert len(store.find_items("newsPageVersion", object_id="a1")) == 2
    assert store.get_item("news", "newsPageVersion", "a1", "fr").id == fr.id


def test_update_item(store):
    created = store.create_item(page("a1", published="false"))

    updated = store.update_item(
        created.model_copy(update={"properties": {"published": "true"}})
    )

    assert updated.updated_at >= created.updated_at
    assert store.get_item("news", "newsPage", "a1").properties == {"published": "true"}


def test_update_missing_item(store):
    with pytest.raises(NotFound):
        store.update_item(page("never-stored"))


def test_find_by_properties(store):
    for name, article_id, displayed in [
        ("homepage", "a1", "true"),
        ("homepage", "a2", "false"),
        ("sidebar", "a1", "true"),
    ]:
        store.create_item(
            PropertyItem(
                key=name,
                object_type="newsTarget",
                object_id=article_id,
                properties={"displayed": displayed},
            )
        )

    shown = store.find_items("newsTarget", key="homepage", properties={"displayed": "true"})

    assert [i.object_id for i in shown] == ["a1"]
    assert {i.key for i in store.find_items("newsTarget", object_id="a1")} == {
        "homepage",
        "sidebar",
    }


def test_delete_items(store):
    store.create_item(PropertyItem(key="homepage", object_type="newsTarget", object_id="a1"))
    store.create_item(PropertyItem(key="sidebar", object_type="newsTarget", object_id="a1"))
    store.create_item(PropertyItem(key="homepage", object_type="newsTarget", object_id="a2"))

    assert store.delete_items("newsTarget", "a1", key="sidebar") == 1
    assert store.delete_items("newsTarget", "a1") == 1
    assert [i.object_id for i in store.find_items("newsTarget")] == ["a2"]


def test_delete_item(store):
    created = store.create_item(page("a1"))
    store.delete_item(created.id)
    assert store.get_item("news", "newsPage", "a1") is None
