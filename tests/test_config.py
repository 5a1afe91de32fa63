import pytest

from fire_clusters.config import (
    ClusterByYearConfig,
    build_min_points_policy,
    config_from_dict,
    get_nested,
    load_config,
    parse_years,
)


def test_constant_policy():
    policy = build_min_points_policy(5)
    assert policy(2003) == 5
    assert build_min_points_policy(None)(2010) == 3


def test_policy_with_overrides():
    policy = build_min_points_policy({"default": 5, "overrides": {2003: 6}})
    assert policy(2003) == 6
    assert policy(2004) == 5


def test_callable_policy_is_kept():
    def policy(year):
        return 6 if year == 2003 else 5

    assert build_min_points_policy(policy) is policy


def test_invalid_policy():
    with pytest.raises(ValueError):
        build_min_points_policy("five")


def test_parse_years():
    assert parse_years(None) is None
    assert parse_years({"start": 2002, "end": 2004}) == [2002, 2003, 2004]
    assert parse_years([2005, 2003, 2003]) == [2003, 2005]
    with pytest.raises(ValueError):
        parse_years({"start": 2002})


def test_config_from_dict_and_yaml(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text(
        "clustering:\n"
        "  method: dbscan\n"
        "  dbscan:\n"
        "    eps: 750\n"
        "  target_crs: EPSG:32642\n"
        "  min_points: {default: 3, overrides: {2003: 4}}\n"
        "  years: {start: 2002, end: 2003}\n"
        "  executor: thread\n",
        encoding="utf-8",
    )
    cfg = config_from_dict(get_nested(load_config(path), ["clustering"], {}))
    assert cfg.method == "dbscan"
    assert cfg.method_params == {"eps": 750}
    assert cfg.target_crs == "EPSG:32642"
    assert cfg.years == [2002, 2003]
    assert cfg.min_points_policy(2003) == 4
    assert cfg.executor == "thread"
    assert cfg.coordinate_columns == ("longitude", "latitude")


def test_get_nested_default():
    assert get_nested({"a": {"b": 1}}, ["a", "c"], "x") == "x"


def test_config_validation():
    with pytest.raises(ValueError):
        ClusterByYearConfig(on_malformed_date="ignore")
    with pytest.raises(ValueError):
        ClusterByYearConfig(executor="cluster")
    with pytest.raises(ValueError):
        ClusterByYearConfig(parallelism=0)
    with pytest.raises(ValueError):
        ClusterByYearConfig(coordinate_columns=("longitude",))
