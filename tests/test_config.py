from cloudlog.config import Settings


class TestSettings:
    def test_default_values(self):
        s = Settings()
        assert s.service_name == ""
        assert s.service_version == ""
        assert s.stack_skip == ()
        assert s.subject_key == ""
        assert s.operation_id_key == ""
        assert s.deterministic_output is False
        assert s.gcp_project_id == ""
        assert s.log_level == "INFO"

    def test_load_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_SERVICE_NAME", "checkout")
        monkeypatch.setenv("LOG_SERVICE_VERSION", "1.4.2")
        monkeypatch.setenv("GCP_PROJECT_ID", "shop-prod")
        s = Settings.load()
        assert s.service_name == "checkout"
        assert s.service_version == "1.4.2"
        assert s.gcp_project_id == "shop-prod"

    def test_stack_skip_parsed_from_comma_list(self, monkeypatch):
        monkeypatch.setenv("LOG_STACK_SKIP", " shop.logutil, ,structlog ")
        s = Settings.load()
        assert s.stack_skip == ("shop.logutil", "structlog")

    def test_field_keys_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_SUBJECT_KEY", "uid")
        monkeypatch.setenv("LOG_OPERATION_ID_KEY", "request_id")
        s = Settings.load()
        assert s.subject_key == "uid"
        assert s.operation_id_key == "request_id"

    def test_parse_bool_accepts_yes_and_1(self, monkeypatch):
        monkeypatch.setenv("LOG_DETERMINISTIC", "1")
        assert Settings.load().deterministic_output is True
        monkeypatch.setenv("LOG_DETERMINISTIC", "yes")
        assert Settings.load().deterministic_output is True
        monkeypatch.setenv("LOG_DETERMINISTIC", "off")
        assert Settings.load().deterministic_output is False

    def test_log_level_normalised_to_uppercase(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        s = Settings.load()
        assert s.log_level == "DEBUG"

    def test_invalid_log_level_falls_back_to_info(self):
        s = Settings(log_level="VERBOSE")
        assert s.log_level == "INFO"

    def test_panic_is_a_valid_level(self):
        assert Settings(log_level="PANIC").log_level == "PANIC"
