"""
Unit Tests for OperationResult
"""

from shared.operation_result import ContractErrorCode, OperationResult


class TestOperationResult:
    """Test success and failure results."""

    def test_ok(self):
        result = OperationResult.ok(42)
        assert result.success
        assert result.result == 42
        assert result.error is None
        assert result.error_code is None

    def test_fail(self):
        result = OperationResult.fail(ContractErrorCode.INVALID_YEARS, "Extension must add 1-5 years")
        assert not result.success
        assert result.result is None
        assert result.error_code == ContractErrorCode.INVALID_YEARS

    def test_to_dict_expands_payload(self, sample_offer):
        data = OperationResult.ok(sample_offer).to_dict()
        assert data["success"]
        assert data["result"] == sample_offer.to_dict()
        assert data["error_code"] is None

    def test_failure_to_dict(self):
        data = OperationResult.fail(ContractErrorCode.TAG_ALREADY_USED, "Tag used").to_dict()
        assert data == {
            "success": False,
            "result": None,
            "error": "Tag used",
            "error_code": "tag_already_used",
        }
