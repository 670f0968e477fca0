"""
Integration tests for the full response data pipeline.

Exercises prepare_response_data and get_response_values on complete models,
including multivariate, mixture and Cox models, and the parameter exclusion
resolver on the same frames.
"""

import numpy as np
import pandas as pd
import pytest

import bayesprep
from bayesprep import (
    MultivariateFrame,
    PreparationMode,
    ResponseFrame,
    exclude_pars,
    get_response_values,
    mixture,
    prepare_response_data,
    save_pars,
)
from bayesprep.core.exceptions import ResponseRangeError
from bayesprep.data.response import BERNOULLI_ADVICE


pytestmark = pytest.mark.integration


@pytest.fixture
def bivariate_data():
    return pd.DataFrame({
        "y1": [0.3, -1.2, 0.8, 2.1, -0.4],
        "y2": [1.0, 2.0, 0.5, 1.5, 3.0],
    })


class TestEndToEndScenarios:

    def test_binary_response(self):
        data = pd.DataFrame({"y": [0, 1, 0, 1, 1]})
        with pytest.raises(ResponseRangeError, match="greater than 0"):
            prepare_response_data(ResponseFrame("y", family="gamma"), data)

        bundle = prepare_response_data(ResponseFrame("y", family="bernoulli"), data)
        assert bundle["N"] == 5
        assert bundle["Y"].tolist() == [0, 1, 0, 1, 1]

    def test_ordinal_response(self, ordinal_data):
        bundle = prepare_response_data(ResponseFrame("y", family="cumulative"), ordinal_data)
        assert bundle["nthres"] == 3
        assert bundle["Y"].max() == 4
        assert bundle.advisories == []

    def test_scalar_trials(self, count_data):
        frame = ResponseFrame.from_formula("y | trials(10)", family="binomial")
        bundle = prepare_response_data(frame, count_data)
        assert bundle["trials"].tolist() == [10] * 20
        assert bundle.advisories == []

    def test_single_trials_advise_bernoulli(self):
        data = pd.DataFrame({"y": [0, 1] * 10})
        frame = ResponseFrame.from_formula("y | trials(1)", family="binomial")
        bundle = prepare_response_data(frame, data)
        assert bundle["trials"].tolist() == [1] * 20
        assert bundle.advisories == [BERNOULLI_ADVICE]

    def test_advisories_can_be_disabled(self):
        bayesprep.configure(**{"data.emit_advisories": False})
        data = pd.DataFrame({"y": [0, 1] * 10})
        frame = ResponseFrame.from_formula("y | trials(1)", family="binomial")
        assert prepare_response_data(frame, data).advisories == []


class TestMultivariate:

    def test_residual_correlations(self, bivariate_data):
        frame = MultivariateFrame(
            [ResponseFrame("y1"), ResponseFrame("y2", family="lognormal")], rescor=True
        )
        bundle = prepare_response_data(frame, bivariate_data)
        assert list(bundle) == ["N_y1", "Y_y1", "N_y2", "Y_y2", "nresp", "nrescor"]
        assert bundle["nresp"] == 2
        assert bundle["nrescor"] == 1

    def test_without_residual_correlations(self, bivariate_data):
        frame = MultivariateFrame([ResponseFrame("y1"), ResponseFrame("y2")])
        bundle = prepare_response_data(frame, bivariate_data)
        assert "nresp" not in bundle

    def test_first_failing_response_fails(self, bivariate_data):
        frame = MultivariateFrame([ResponseFrame("y1", family="lognormal"), ResponseFrame("y2")])
        with pytest.raises(ResponseRangeError):
            prepare_response_data(frame, bivariate_data)

    def test_advisories_are_collected(self):
        data = pd.DataFrame({"a": [0, 1, 1], "b": [1.0, 2.0, 3.0]})
        frame = MultivariateFrame([
            ResponseFrame.from_formula("a | trials(1)", family="binomial"),
            ResponseFrame("b"),
        ])
        assert prepare_response_data(frame, data).advisories == [BERNOULLI_ADVICE]

    def test_exclusion_of_same_model(self):
        frame = MultivariateFrame([ResponseFrame("y1"), ResponseFrame("y2")], rescor=True)
        names = exclude_pars(frame, save_pars(all=True))
        assert names == [
            "Rescor", "Sigma",
            "Lncor_y1", "Cortime_y1", "chol_cor_y1",
            "Lncor_y2", "Cortime_y2", "chol_cor_y2",
        ]


class TestAuxiliaryData:

    def test_mixture(self):
        data = pd.DataFrame({"y": [0.1, 2.3, -0.7, 1.1]})
        frame = ResponseFrame("y", family=mixture("gaussian", "gaussian"))
        prior = pd.DataFrame({"prior": ["dirichlet(c(1, 4))"], "class": ["theta"]})
        bundle = prepare_response_data(frame, data, prior=prior)
        np.testing.assert_array_equal(bundle["con_theta"], [1.0, 4.0])

    def test_cox(self, survival_data):
        frame = ResponseFrame.from_formula("time | bhaz(gr = strata)", family="cox")
        bundle = prepare_response_data(frame, survival_data)
        assert bundle["Kbhaz"] == 5
        assert bundle["Zbhaz"].shape == (10, 5)
        assert bundle["ngrbhaz"] == 2
        assert bundle["con_sbhaz"].shape == (2, 5)

    def test_cox_with_subset(self):
        data = pd.DataFrame({
            "time": [0.5, 1.5, 2.5, 3.5, 4.5, 5.5],
            "keep": [True, False, True, False, True, False],
        })
        frame = ResponseFrame.from_formula("time | subset(keep)", family="cox")
        bundle = prepare_response_data(frame, data)
        assert bundle["N"] == 3
        assert bundle["Zbhaz"].shape[0] == bundle["N"]
        assert bundle["Zcbhaz"].shape[0] == bundle["N"]

    def test_empty_data(self):
        data = pd.DataFrame({"y": pd.Series([], dtype=float), "w": pd.Series([], dtype=float)})
        frame = ResponseFrame.from_formula("y | weights(w)")
        bundle = prepare_response_data(frame, data)
        assert bundle["N"] == 0
        assert len(bundle["weights"]) == 0

    def test_jax_conversion(self, survival_data):
        frame = ResponseFrame("time", family="cox")
        arrays = prepare_response_data(frame, survival_data).to_jax()
        assert arrays["Zcbhaz"].shape == (10, 5)
        assert float(arrays["Y"][0]) == pytest.approx(0.5)


class TestMissingValues:

    @pytest.fixture
    def data(self):
        return pd.DataFrame({
            "y": [1.2, np.nan, 0.4, np.nan],
            "x": [0.1, 0.2, 0.3, 0.4],
            "g": ["a", "a", "b", "b"],
        })

    def test_fitting_uses_sentinel(self, grouped_frame, data):
        bundle = prepare_response_data(grouped_frame, data)
        assert bundle["Nmi"] == 2
        assert bundle["Jmi"].tolist() == [2, 4]
        assert np.all(np.isposinf(bundle["Y"][[1, 3]]))
        assert "Yl" in exclude_pars(grouped_frame)

    def test_prediction_keeps_missing_values(self, grouped_frame, data):
        bundle = prepare_response_data(grouped_frame, data, mode=PreparationMode.PREDICTION)
        assert np.all(np.isnan(bundle["Y"][[1, 3]]))


class TestGetResponseValues:

    def test_univariate(self, count_data):
        frame = ResponseFrame.from_formula("y | trials(n)", family="binomial")
        values = get_response_values(frame, count_data)
        assert values.tolist() == count_data["y"].tolist()

    def test_multivariate(self, bivariate_data):
        frame = MultivariateFrame([ResponseFrame("y1"), ResponseFrame("y2")])
        values = get_response_values(frame, bivariate_data)
        assert list(values.columns) == ["y1", "y2"]
        np.testing.assert_array_equal(values["y2"], bivariate_data["y2"])

        single = get_response_values(frame, bivariate_data, resp="y2")
        np.testing.assert_array_equal(single, bivariate_data["y2"])

    def test_unknown_response(self, bivariate_data):
        frame = MultivariateFrame([ResponseFrame("y1"), ResponseFrame("y2")])
        with pytest.raises(ValueError, match="Invalid response names"):
            get_response_values(frame, bivariate_data, resp="y3")

    def test_warns_for_censored_models(self):
        data = pd.DataFrame({"y": [1.0, 2.0], "c": ["none", "right"]})
        frame = ResponseFrame.from_formula("y | cens(c)", family="weibull")
        with pytest.warns(UserWarning, match="censored"):
            get_response_values(frame, data, warn=True)

    def test_validates_responses(self):
        frame = ResponseFrame("y", family="poisson")
        with pytest.raises(ResponseRangeError):
            get_response_values(frame, pd.DataFrame({"y": [-1, 2]}))
