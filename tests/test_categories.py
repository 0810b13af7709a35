import json

from categories import (
    CANONICAL_CATEGORIES,
    DEFAULT_CATEGORY,
    Category,
    ParseStatus,
    list_categories,
    parse_category,
)


def test_registry_lists_nine_canonical_entries() -> None:
    names = [item["name"] for item in list_categories()]
    assert names == [
        "Food",
        "Transport",
        "Entertainment",
        "Shopping",
        "Bills",
        "Health",
        "Travel",
        "Salary",
        "Other",
    ]
    assert all(item["emoji"] for item in list_categories())
    assert CANONICAL_CATEGORIES[-1] == DEFAULT_CATEGORY


def test_absent_category_defaults_to_other() -> None:
    for raw in (None, "", {}):
        parsed = parse_category(raw)
        assert parsed.status == ParseStatus.defaulted
        assert parsed.category == Category("Other", "📦")


def test_object_and_json_string_parse_the_same() -> None:
    raw = {"name": "Food", "emoji": "🍔"}
    from_object = parse_category(raw)
    from_string = parse_category(json.dumps(raw))
    assert from_object.status == ParseStatus.valid
    assert from_object.category == from_string.category == Category("Food", "🍔")


def test_novel_category_is_accepted() -> None:
    parsed = parse_category({"name": "  Pets ", "emoji": "🐶"})
    assert parsed.status == ParseStatus.valid
    assert parsed.category == Category("Pets", "🐶")


def test_canonical_name_is_normalized() -> None:
    assert parse_category({"name": "food", "emoji": "🍔"}).category.name == "Food"
    # One typo is corrected only when the emoji identifies the entry.
    assert parse_category({"name": "Fod", "emoji": "🍔"}).category.name == "Food"
    assert parse_category({"name": "Fod", "emoji": "🐟"}).category.name == "Fod"


def test_malformed_categories_are_rejected_with_default() -> None:
    for raw in (
        "{not json",
        json.dumps(["Food", "🍔"]),
        {"name": "Food"},
        {"name": "", "emoji": "🍔"},
        {"name": 3, "emoji": "🍔"},
        42,
    ):
        parsed = parse_category(raw)
        assert parsed.status == ParseStatus.rejected, raw
        assert parsed.category == DEFAULT_CATEGORY
        assert parsed.reason
