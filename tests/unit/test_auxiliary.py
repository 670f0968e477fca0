"""
Tests for mixture weights and Cox baseline hazard data.
"""

import numpy as np
import pandas as pd
import pytest
from scipy.integrate import trapezoid

from bayesprep.core.exceptions import PriorSpecificationError, ResponseDataError
from bayesprep.data.auxiliary import (
    BaselineHazardBasis,
    bhaz_basis_matrix,
    data_bhaz,
    data_mixture,
    eval_dirichlet,
    extract_bhaz,
)
from bayesprep.families import mixture
from bayesprep.formulas import PredictorFrame, ResponseFrame


def prior_table(*rows):
    return pd.DataFrame(list(rows), columns=["prior", "class", "group", "resp"])


class TestEvalDirichlet:

    def test_default(self):
        np.testing.assert_array_equal(eval_dirichlet("", 3), [1.0, 1.0, 1.0])

    def test_scalar_broadcast(self):
        np.testing.assert_array_equal(eval_dirichlet("dirichlet(2)", 2), [2.0, 2.0])

    def test_vector(self):
        np.testing.assert_array_equal(eval_dirichlet("dirichlet(c(1, 2, 3))", 3), [1.0, 2.0, 3.0])

    def test_auxiliary_data(self):
        result = eval_dirichlet("dirichlet(alpha)", 2, {"alpha": np.array([0.5, 4.0])})
        np.testing.assert_array_equal(result, [0.5, 4.0])

    def test_positive_values(self):
        with pytest.raises(PriorSpecificationError, match="positive values"):
            eval_dirichlet("dirichlet(c(1, -1))", 2)

    def test_length(self):
        with pytest.raises(PriorSpecificationError, match="expected input of length 3"):
            eval_dirichlet("dirichlet(c(1, 2))", 3)

    def test_unknown_name(self):
        with pytest.raises(PriorSpecificationError, match="auxiliary data"):
            eval_dirichlet("dirichlet(alpha)", 2)

    def test_not_dirichlet(self):
        with pytest.raises(PriorSpecificationError, match="dirichlet"):
            eval_dirichlet("normal(0, 1)", 2)


class TestDataMixture:

    def test_default_concentration(self):
        frame = ResponseFrame("y", family=mixture("gaussian", "gaussian", "student"))
        out = data_mixture(frame)
        np.testing.assert_array_equal(out["con_theta"], [1.0, 1.0, 1.0])

    def test_prior_concentration(self):
        frame = ResponseFrame("y", family=mixture("gaussian", "gaussian"))
        prior = prior_table(("dirichlet(c(2, 3))", "theta", "", ""))
        np.testing.assert_array_equal(data_mixture(frame, prior=prior)["con_theta"], [2.0, 3.0])

    def test_predicted_mixing_proportions(self):
        frame = ResponseFrame(
            "y",
            family=mixture("gaussian", "gaussian"),
            dpars={"mu1": PredictorFrame(), "mu2": PredictorFrame(), "theta1": PredictorFrame()},
        )
        assert data_mixture(frame) == {}

    def test_not_a_mixture(self):
        assert data_mixture(ResponseFrame("y")) == {}


class TestBaselineHazardBasis:

    @pytest.fixture
    def times(self):
        return np.array([0.5, 1.2, 2.3, 3.1, 4.8, 5.0, 6.7, 7.2, 8.9, 10.0])

    def test_boundary_knots(self, times):
        basis = BaselineHazardBasis.from_data(times)
        lower, upper = basis.boundary_knots
        assert lower == pytest.approx(max(0.5 - 9.5 / 50, 0))
        assert upper == pytest.approx(10.0 + 9.5 / 50)

    def test_lower_knot_clipped_at_zero(self):
        basis = BaselineHazardBasis.from_data([0.01, 5.0, 10.0])
        assert basis.boundary_knots[0] == 0.0

    def test_number_of_columns(self, times):
        basis = BaselineHazardBasis.from_data(times, df=5)
        assert len(basis.knots) == 1
        assert basis.ncol == 5
        assert basis.m_spline(times).shape == (10, 5)
        no_intercept = BaselineHazardBasis.from_data(times, df=5, intercept=False)
        assert no_intercept.ncol == 5
        assert len(no_intercept.knots) == 2

    def test_m_spline_integrates_to_one(self, times):
        basis = BaselineHazardBasis.from_data(times)
        grid = np.linspace(*basis.boundary_knots, 4001)
        values = basis.m_spline(grid)
        assert np.all(values >= 0)
        integrals = trapezoid(values, grid, axis=0)
        np.testing.assert_allclose(integrals, np.ones(basis.ncol), atol=1e-3)

    def test_i_spline_is_monotone_from_zero_to_one(self, times):
        basis = BaselineHazardBasis.from_data(times)
        lower, upper = basis.boundary_knots
        grid = np.linspace(lower, upper, 50)
        values = basis.i_spline(grid)
        assert np.all(np.diff(values, axis=0) >= -1e-12)
        np.testing.assert_allclose(values[0], 0.0, atol=1e-12)
        np.testing.assert_allclose(values[-1], 1.0, atol=1e-8)

    def test_predict_reuses_basis(self, times):
        basis = BaselineHazardBasis.from_data(times)
        new = np.array([1.0, 2.0])
        np.testing.assert_array_equal(basis.predict(new), basis.m_spline(new))
        np.testing.assert_array_equal(
            bhaz_basis_matrix(new, basis=basis, integrate=True), basis.i_spline(new)
        )

    def test_degenerate_response(self):
        with pytest.raises(ResponseDataError, match="Boundary knots"):
            BaselineHazardBasis.from_data([2.0, 2.0, 2.0])

    def test_df_too_small(self, times):
        with pytest.raises(ResponseDataError, match="'df'"):
            BaselineHazardBasis.from_data(times, df=2)


class TestDataBhaz:

    def test_default_basis(self, survival_data):
        frame = ResponseFrame("time", family="cox")
        out = data_bhaz(frame, survival_data)
        assert out["Kbhaz"] == 5
        assert out["Zbhaz"].shape == (10, 5)
        assert out["Zcbhaz"].shape == (10, 5)
        np.testing.assert_array_equal(out["con_sbhaz"], np.ones(5))

    def test_extract_defaults(self, survival_data):
        spec = extract_bhaz(ResponseFrame("time", family="cox"), survival_data)
        assert spec.args == {"df": 5, "intercept": True}
        assert spec.groups is None

    def test_bhaz_arguments(self, survival_data):
        frame = ResponseFrame.from_formula("time | bhaz(df = 6)", family="cox")
        assert data_bhaz(frame, survival_data)["Kbhaz"] == 6

    def test_stratified(self, survival_data):
        frame = ResponseFrame.from_formula("time | bhaz(gr = strata)", family="cox")
        prior = prior_table(("dirichlet(2)", "sbhaz", "b", ""))
        out = data_bhaz(frame, survival_data, prior=prior)
        assert out["ngrbhaz"] == 2
        assert out["Jgrbhaz"].tolist() == [1, 2] * 5
        assert out["con_sbhaz"].shape == (2, 5)
        np.testing.assert_array_equal(out["con_sbhaz"][0], np.ones(5))
        np.testing.assert_array_equal(out["con_sbhaz"][1], np.full(5, 2.0))

    def test_subset_rows(self, survival_data):
        data = survival_data.assign(keep=[True, True, False, True, True, False, True, True, True, False])
        frame = ResponseFrame.from_formula("time | subset(keep) + bhaz(gr = strata)", family="cox")
        out = data_bhaz(frame, data)
        kept = data.loc[data["keep"]]
        assert out["Zbhaz"].shape == (7, 5)
        assert out["Zcbhaz"].shape == (7, 5)
        assert out["Jgrbhaz"].tolist() == [1 if s == "a" else 2 for s in kept["strata"]]

        basis = BaselineHazardBasis.from_data(kept["time"])
        np.testing.assert_allclose(out["Zbhaz"], basis.m_spline(kept["time"]))

    def test_not_cox(self, survival_data):
        assert data_bhaz(ResponseFrame("time", family="weibull"), survival_data) == {}
