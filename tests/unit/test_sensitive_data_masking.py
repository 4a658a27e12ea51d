import pytest

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_aadhaar_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "aadhar": "2000 0000 0001"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "2000 0000 0001" not in result["aadhar"]
        assert "***MASKED***" in result["aadhar"]

    def test_mobile_number_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "phone": "+91 9876543210"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "9876543210" not in result["phone"]
        assert "***MASKED***" in result["phone"]

    def test_password_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_otp_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "body": "otp=042817"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "042817" not in result["body"]
        assert "***MASKED***" in result["body"]

    def test_token_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    def test_non_sensitive_data_unchanged(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "order.created", "status": "pending"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["status"] == "pending"
        assert result["event"] == "order.created"

    def test_delivery_codes_masked_by_key(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "delivery_otp": "042817", "qr_token": "x9Yq"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["delivery_otp"] == "***MASKED***"
        assert result["qr_token"] == "***MASKED***"
