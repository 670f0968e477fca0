"""
Tests for the addition term extractor.
"""

import numpy as np
import pandas as pd
import pytest

from bayesprep.core.exceptions import (
    LengthMismatchError,
    MalformedAdditionTermError,
    MissingAdditionTermError,
)
from bayesprep.data.addition import (
    evaluate_expression,
    factor_levels,
    get_ad_values,
    get_ad_vars,
    level_codes,
    model_response,
    subset_data,
    trunc_bounds,
)
from bayesprep.formulas import ResponseFrame


@pytest.fixture
def data():
    return pd.DataFrame({
        "y": [1.0, 2.0, 3.0, 4.0],
        "n": [5, 5, 6, 6],
        "w": [1.0, 2.0, 1.0, 2.0],
        "keep": [True, False, True, True],
    })


class TestEvaluateExpression:

    def test_column(self, data):
        np.testing.assert_array_equal(evaluate_expression("n", data), [5, 5, 6, 6])

    def test_literal(self, data):
        values = evaluate_expression("10", data)
        assert len(values) == 1 and values[0] == 10

    def test_constant(self, data):
        assert evaluate_expression("-Inf", data)[0] == -np.inf

    def test_arithmetic(self, data):
        np.testing.assert_array_equal(evaluate_expression("n * 2", data), [10, 10, 12, 12])

    def test_unknown_column(self, data):
        with pytest.raises(MalformedAdditionTermError, match="could not evaluate 'unknown'"):
            evaluate_expression("unknown", data, role="trials")


class TestGetAdValues:

    def test_declared_term(self, data):
        frame = ResponseFrame.from_formula("y | trials(n)", family="binomial")
        np.testing.assert_array_equal(get_ad_values(frame, "trials", "trials", data), [5, 5, 6, 6])

    def test_absent_term(self, data):
        frame = ResponseFrame.from_formula("y")
        assert get_ad_values(frame, "se", "se", data) is None
        with pytest.raises(MissingAdditionTermError, match="Specifying 'trials' is required"):
            get_ad_values(frame, "trials", "trials", data, required=True)

    def test_wrong_length(self, data):
        frame = ResponseFrame.from_formula("y | se(c(1, 2))")
        with pytest.raises(LengthMismatchError):
            get_ad_values(frame, "se", "se", data)

    def test_variadic(self, data):
        frame = ResponseFrame.from_formula("y | vreal(w, 3)")
        values = get_ad_vars(frame, "vreal", data)
        assert len(values) == 2
        np.testing.assert_array_equal(values[0], [1.0, 2.0, 1.0, 2.0])
        assert values[1].tolist() == [3]


class TestSubsetAndBounds:

    def test_subset(self, data):
        frame = ResponseFrame.from_formula("y | subset(keep)")
        assert subset_data(frame, data)["y"].tolist() == [1.0, 3.0, 4.0]

    def test_trunc_bounds_default_to_infinite(self, data):
        frame = ResponseFrame.from_formula("y | trunc(lb = 0)")
        lb, ub = trunc_bounds(frame, data)
        assert lb.tolist() == [0.0] * 4
        assert np.all(np.isinf(ub))

    def test_trunc_bounds_include_family(self, data):
        frame = ResponseFrame.from_formula("y | mi()", family="lognormal")
        lb, ub = trunc_bounds(frame, data, incl_family=True)
        assert lb.tolist() == [0.0] * 4


class TestResponseHelpers:

    def test_model_response_matrix(self, data):
        frame = ResponseFrame.from_formula("cbind(y, n)", family="gaussian")
        response = model_response(frame, data)
        assert isinstance(response, pd.DataFrame)
        assert list(response.columns) == ["y", "n"]

    def test_factor_levels(self):
        assert factor_levels(pd.Series([3, 1, 2, np.nan, 1])) == [1.0, 2.0, 3.0]
        cat = pd.Series(pd.Categorical(["b", "a"], categories=["b", "a", "c"]))
        assert factor_levels(cat) == ["b", "a"]

    def test_level_codes(self):
        codes = level_codes(pd.Series(["a", "c", None]), ["a", "b", "c"])
        assert codes[:2].tolist() == [0.0, 2.0]
        assert np.isnan(codes[2])
