import numpy as np
import pytest

import model_training as mt
from errors import EmptyPartitionError, UnseenCategoryError
from splitting import split_train_test


@pytest.fixture(scope="module")
def split(analysis_table):
    return split_train_test(analysis_table, 0.8, np.random.default_rng(123))


def test_linear_model_fits_and_predicts(split):
    model = mt.make_model("linear").fit(split.train)
    pred = model.predict(split.test)

    assert pred.shape == (len(split.test),)
    assert np.isfinite(pred).all()
    assert model.diagnostics_.n_obs == len(split.train)
    assert "property_ward" in model.feature_importance().index
    assert "const" not in model.feature_importance().index
    assert model.coefficients().index[0] == "(Intercept)"


def test_linear_predict_rejects_unseen_property_type(small_table):
    train = small_table[small_table["property_type"] != "Group Home"]
    model = mt.LinearDurationModel().fit(train)
    with pytest.raises(UnseenCategoryError) as exc:
        model.predict(small_table)
    assert exc.value.column == "property_type"
    assert exc.value.levels == ["Group Home"]


def test_forest_tolerates_unseen_levels(small_table):
    train = small_table[small_table["property_type"] != "Group Home"]
    model = mt.make_model("forest", np.random.default_rng(0), n_estimators=10, n_jobs=1).fit(train)
    assert len(model.predict(small_table)) == len(small_table)
    assert model.unseen_levels(small_table) == {"property_type": {"Group Home"}}


def test_forest_importance_covers_predictors(split):
    model = mt.make_model("forest", np.random.default_rng(5), n_estimators=20, n_jobs=1).fit(split.train)
    imp = model.feature_importance()
    assert set(imp.index) == {"enforcement_proceedings", "property_type", "property_ward"}
    assert imp.sum() == pytest.approx(1.0)


def test_forest_seed_comes_from_generator(split):
    a = mt.make_model("forest", np.random.default_rng(9), n_estimators=10, n_jobs=1).fit(split.train)
    b = mt.make_model("forest", np.random.default_rng(9), n_estimators=10, n_jobs=1).fit(split.train)
    assert a.random_state == b.random_state
    np.testing.assert_allclose(a.predict(split.test), b.predict(split.test))


@pytest.mark.parametrize("kind", list(mt.ModelKind))
def test_fit_on_empty_training_set_raises(small_table, kind):
    model = mt.make_model(kind, np.random.default_rng(0), **({"n_estimators": 5} if kind == "forest" else {}))
    with pytest.raises(EmptyPartitionError):
        model.fit(small_table.iloc[0:0])


def test_predict_before_fit_raises(small_table):
    with pytest.raises(RuntimeError):
        mt.LinearDurationModel().predict(small_table)


def test_train_models_returns_both_kinds(small_table):
    models = mt.train_models(small_table, rng=np.random.default_rng(0), n_estimators=5, n_jobs=1)
    assert set(models) == {mt.ModelKind.LINEAR, mt.ModelKind.FOREST}
    assert models[mt.ModelKind.FOREST].n_estimators == 5


def test_save_load_round_trip(small_table, tmp_path):
    model = mt.make_model("forest", np.random.default_rng(1), n_estimators=5, n_jobs=1).fit(small_table)
    path = mt.save_model(model, str(tmp_path / "forest.joblib"))
    loaded = mt.load_model(path)
    assert isinstance(loaded, mt.ForestDurationModel)
    np.testing.assert_allclose(loaded.predict(small_table), model.predict(small_table))


def test_load_model_rejects_foreign_objects(tmp_path):
    path = tmp_path / "other.joblib"
    mt.joblib.dump({"not": "a model"}, path)
    with pytest.raises(TypeError):
        mt.load_model(str(path))


def test_model_path_uses_kind(tmp_path):
    assert mt.model_path("linear", str(tmp_path)).endswith("linear_model.joblib")


def test_small_table_design_has_full_rank(small_table):
    model = mt.LinearDurationModel().fit(small_table)
    design = model.pipeline_[:-1].transform(model._design(small_table))
    with_const = np.column_stack([np.ones(len(design)), design])
    assert np.linalg.matrix_rank(with_const) == with_const.shape[1]
