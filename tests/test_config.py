"""Tests for configuration validation and loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from oidc_translator.config.loader import expand_env_vars, load_config
from oidc_translator.config.schema import AuthType, TranslatorConfig
from oidc_translator.errors import ConfigurationError, ErrorKind
from oidc_translator.translator.core import BearerPrefixPolicy

_BASE = {
    "issuer": "https://idp/",
    "auth_type": "client_credentials",
    "client_id": "translator",
    "client_secret": "s3cr3t-client-secret",
}


class TestTranslatorConfig:
    def test_defaults(self) -> None:
        cfg = TranslatorConfig(**_BASE)
        assert cfg.issuer == "https://idp"
        assert cfg.ingress_port == 50051
        assert cfg.egress_port == 50052
        assert cfg.name == "k8s oidc token exchange translator"
        assert cfg.bearer_prefix_policy is BearerPrefixPolicy.LITERAL_REPLACE
        assert cfg.subject_header == "x-mesh-subject"
        assert cfg.debug is False

    def test_discovery_document_url_from_issuer(self) -> None:
        cfg = TranslatorConfig(**_BASE)
        assert cfg.discovery_document_url == "https://idp/.well-known/openid-configuration"

    def test_discovery_document_url_override(self) -> None:
        cfg = TranslatorConfig(**_BASE, discovery_url="https://idp/custom/discovery.json")
        assert cfg.discovery_document_url == "https://idp/custom/discovery.json"

    @pytest.mark.parametrize("value", ["client-credentials", "CLIENT_CREDENTIALS"])
    def test_auth_type_spellings(self, value: str) -> None:
        cfg = TranslatorConfig(**{**_BASE, "auth_type": value})
        assert cfg.auth_type is AuthType.CLIENT_CREDENTIALS

    def test_secret_not_in_repr(self) -> None:
        assert "s3cr3t-client-secret" not in repr(TranslatorConfig(**_BASE))

    @pytest.mark.parametrize("missing", ["client_id", "client_secret"])
    def test_client_credentials_requires_fields(self, missing: str) -> None:
        data = dict(_BASE)
        del data[missing]
        with pytest.raises(ValidationError, match=missing):
            TranslatorConfig(**data)

    def test_jwt_profile_requires_path(self) -> None:
        with pytest.raises(ValidationError, match="jwt_profile_path"):
            TranslatorConfig(issuer="https://idp", auth_type="jwt_profile")

    def test_invalid_issuer_url(self) -> None:
        with pytest.raises(ValidationError, match="http"):
            TranslatorConfig(**{**_BASE, "issuer": "idp.example.com"})

    def test_ports_must_differ(self) -> None:
        with pytest.raises(ValidationError, match="must differ"):
            TranslatorConfig(**_BASE, ingress_port=8080, egress_port=8080)

    def test_port_range(self) -> None:
        with pytest.raises(ValidationError):
            TranslatorConfig(**_BASE, ingress_port=70000)


class TestExpandEnvVars:
    def test_expands_nested(self) -> None:
        env = {"SECRET": "abc"}
        assert expand_env_vars({"a": ["${SECRET}", 1], "b": "x-${SECRET}"}, env) == {
            "a": ["abc", 1],
            "b": "x-abc",
        }

    def test_unset_left_unchanged(self) -> None:
        assert expand_env_vars("${NOPE}", {}) == "${NOPE}"


class TestLoadConfig:
    def test_from_environment(self) -> None:
        env = {
            "ISSUER": "https://idp",
            "AUTH_TYPE": "client-credentials",
            "CLIENT_ID": "cid",
            "CLIENT_SECRET": "csec",
            "INGRESS_PORT": "9001",
            "DEBUG": "true",
            "DISCOVERY_URL": "",
        }
        cfg = load_config(environ=env)
        assert cfg.client_id == "cid"
        assert cfg.ingress_port == 9001
        assert cfg.debug is True
        assert cfg.discovery_url is None

    def test_yaml_file_with_env_expansion(self, tmp_path) -> None:
        path = tmp_path / "translator.yaml"
        path.write_text(
            "issuer: https://idp\n"
            "auth_type: client_credentials\n"
            "client_id: cid\n"
            "client_secret: ${MY_SECRET}\n"
            "egress_port: 9100\n",
            encoding="utf-8",
        )
        cfg = load_config(str(path), environ={"MY_SECRET": "from-env"})
        assert cfg.client_secret == "from-env"
        assert cfg.egress_port == 9100

    def test_priority_overrides_env_file(self, tmp_path) -> None:
        path = tmp_path / "translator.yml"
        path.write_text("issuer: https://file\nauth_type: client_credentials\n", encoding="utf-8")
        env = {"ISSUER": "https://env", "CLIENT_ID": "cid", "CLIENT_SECRET": "csec"}
        cfg = load_config(str(path), overrides={"issuer": "https://cli", "client_id": None},
                          environ=env)
        assert cfg.issuer == "https://cli"
        assert cfg.client_id == "cid"

    def test_missing_credentials_is_configuration_error(self) -> None:
        env = {"ISSUER": "https://idp", "AUTH_TYPE": "client_credentials", "CLIENT_ID": "cid"}
        with pytest.raises(ConfigurationError, match="client_secret") as exc_info:
            load_config(environ=env)
        assert exc_info.value.kind is ErrorKind.CONFIGURATION

    def test_validation_error_does_not_echo_secret(self) -> None:
        env = {
            "ISSUER": "not-a-url",
            "AUTH_TYPE": "client_credentials",
            "CLIENT_ID": "cid",
            "CLIENT_SECRET": "very-secret-value",
        }
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(environ=env)
        assert "issuer" in str(exc_info.value)
        assert "very-secret-value" not in str(exc_info.value)

    def test_unsupported_extension(self, tmp_path) -> None:
        path = tmp_path / "translator.json"
        path.write_text("{}", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Unsupported config file extension"):
            load_config(str(path), environ={})

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="Error reading configuration file"):
            load_config(str(tmp_path / "absent.yaml"), environ={})

    def test_non_mapping_yaml(self, tmp_path) -> None:
        path = tmp_path / "translator.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(path), environ={})
