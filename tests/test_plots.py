import pandas as pd

from fire_clusters.plots import plot_annual_clusters


def _clustered():
    return pd.DataFrame(
        {
            "year": ["2010", "2010", "2010", "2010"],
            "longitude": [44.0, 44.001, 44.0005, 45.0],
            "latitude": [33.0, 33.0, 33.0009, 34.0],
            "projected_x": [406000.0, 406090.0, 406045.0, 500000.0],
            "projected_y": [3651000.0, 3651000.0, 3651100.0, 3762000.0],
            "cluster_id": [1, 1, 1, 0],
        }
    )


def test_plot_writes_png(tmp_path):
    path = tmp_path / "figures" / "clusters_2010.png"
    assert plot_annual_clusters(_clustered(), 2010, path)
    assert path.exists()


def test_plot_skips_missing_year(tmp_path):
    path = tmp_path / "clusters_2011.png"
    assert not plot_annual_clusters(_clustered(), 2011, path, projected=False)
    assert not path.exists()
