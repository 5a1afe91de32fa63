import pandas as pd
import pytest

from fire_clusters.errors import ReprojectionError
from fire_clusters.io import (
    add_projected_coordinates,
    ensure_required_columns,
    load_fire_csvs,
    rename_columns,
    save_dataframe,
)


def test_load_fire_csvs_concatenates_sorted(tmp_path):
    pd.DataFrame({"latitude": [1.0], "longitude": [2.0], "acq_date": ["2010-01-01"]}).to_csv(
        tmp_path / "fire_b.csv", index=False
    )
    pd.DataFrame({"latitude": [3.0], "longitude": [4.0], "acq_date": ["2009-01-01"]}).to_csv(
        tmp_path / "fire_a.csv", index=False
    )
    df = load_fire_csvs(str(tmp_path / "fire_*.csv"))
    assert df["acq_date"].tolist() == ["2009-01-01", "2010-01-01"]
    assert len(load_fire_csvs(str(tmp_path / "fire_*.csv"), max_rows_total=1)) == 1


def test_load_fire_csvs_no_match(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_fire_csvs(str(tmp_path / "missing_*.csv"))


def test_rename_columns_skips_missing():
    df = pd.DataFrame({"lat": [1.0], "lon": [2.0]})
    out = rename_columns(df, {"lat": "latitude", "lon": "longitude", "date": "acq_date"})
    assert list(out.columns) == ["latitude", "longitude"]


def test_ensure_required_columns():
    with pytest.raises(ValueError):
        ensure_required_columns(pd.DataFrame({"latitude": [1.0]}), ["latitude", "longitude"])


def test_projection_without_target_copies_coordinates():
    df = pd.DataFrame({"longitude": [44.0], "latitude": [33.0]})
    out = add_projected_coordinates(df)
    assert out["projected_x"].tolist() == [44.0]
    assert out["projected_y"].tolist() == [33.0]
    assert "projected_x" not in df.columns


def test_projection_to_utm_central_meridian():
    df = pd.DataFrame({"longitude": [45.0], "latitude": [0.0]})
    out = add_projected_coordinates(df, target_crs="EPSG:32638")
    assert out["projected_x"].iloc[0] == pytest.approx(500000.0, abs=1e-3)
    assert out["projected_y"].iloc[0] == pytest.approx(0.0, abs=1e-3)


def test_invalid_crs_raises_reprojection_error():
    df = pd.DataFrame({"longitude": [45.0], "latitude": [0.0]})
    with pytest.raises(ReprojectionError):
        add_projected_coordinates(df, target_crs="EPSG:999999")


def test_save_dataframe_creates_parents(tmp_path):
    path = tmp_path / "nested" / "out.csv"
    save_dataframe(pd.DataFrame({"a": [1, 2]}), path)
    assert pd.read_csv(path)["a"].tolist() == [1, 2]
