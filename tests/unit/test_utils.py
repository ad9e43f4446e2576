from utils import clean_name, clean_names, create_directories, save_plot

import matplotlib.pyplot as plt


def test_clean_name_snake_cases_raw_headers():
    assert clean_name("_id") == "id"
    assert clean_name("propertyWard") == "property_ward"
    assert clean_name("INSPECTIONS_OPENDATE") == "inspections_opendate"
    assert clean_name("VIOLATION_FIRE_CODE") == "violation_fire_code"


def test_clean_names_suffixes_duplicates():
    assert clean_names(["Ward", "ward", "WARD"]) == ["ward", "ward_2", "ward_3"]


def test_create_directories(tmp_path):
    target = tmp_path / "a" / "b"
    create_directories([str(target)])
    assert target.is_dir()


def test_save_plot_writes_png(tmp_path):
    fig, ax = plt.subplots()
    ax.plot([0, 1], [0, 1])
    path = save_plot(fig, "line", str(tmp_path))
    assert path.endswith("line.png")
    assert (tmp_path / "line.png").exists()
