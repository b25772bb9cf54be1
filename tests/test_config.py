import json

from brewcrew import config


def test_query_battery_crosses_terms_and_areas():
    battery = config.build_query_battery(["cafe", "bakery"], ["Raleigh NC", "Cary NC"])
    assert battery == ["cafe Raleigh NC", "cafe Cary NC", "bakery Raleigh NC", "bakery Cary NC"]


def test_default_batteries_cover_sub_areas():
    assert "coffee shops Chapel Hill NC" in config.NEW_PLACE_QUERIES
    assert "ice cream Durham NC" in config.NEW_PLACE_QUERIES
    assert "top rated coffee shops Durham NC" in config.BEST_REVIEWED_QUERIES
    assert len(set(config.NEW_PLACE_QUERIES)) == len(config.NEW_PLACE_QUERIES)


def test_load_search_config_missing_file(tmp_path):
    assert config.load_search_config(str(tmp_path / "nope.json")) is False


def test_load_search_config_overrides(tmp_path, monkeypatch):
    for name in (
        "SUB_AREAS",
        "NEW_PLACE_QUERIES",
        "BEST_REVIEWED_QUERIES",
        "EXCLUDE_TERMS",
        "MAX_SHOPS_TO_SHOW",
        "STORE_DB_PATH",
    ):
        monkeypatch.setattr(config, name, getattr(config, name))
    path = tmp_path / "search_config.json"
    path.write_text(
        json.dumps(
            {
                "sub_areas": ["Asheville NC"],
                "exclude_terms": ["Casino"],
                "max_shops_to_show": 20,
                "store_db_path": "data/asheville.sqlite",
            }
        ),
        encoding="utf-8",
    )

    assert config.load_search_config(str(path)) is True

    assert config.SUB_AREAS == ["Asheville NC"]
    assert all(q.endswith("Asheville NC") for q in config.NEW_PLACE_QUERIES)
    assert "best bakery Asheville NC" in config.BEST_REVIEWED_QUERIES
    assert config.EXCLUDE_TERMS == ["casino"]
    assert config.MAX_SHOPS_TO_SHOW == 20
    assert config.STORE_DB_PATH == "data/asheville.sqlite"
