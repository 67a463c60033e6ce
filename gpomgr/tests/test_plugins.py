"""
Tests for directory backends, secret stores, config and validation.
"""

import pytest
import yaml
from cryptography.fernet import Fernet

from gpomgr.core.config import GpoManagerConfig
from gpomgr.core.errors import (
    ConfigError,
    DirectoryUnavailableError,
    IdentityNotFoundError,
    InvalidArgumentError,
    SecretNotFoundError,
    SecretStoreError,
)
from gpomgr.core.models import Credentials
from gpomgr.core.validator import Validator
from gpomgr.plugins.directory import YamlDirectory
from gpomgr.plugins.secrets import SECRET_KEY_ENV, FernetSecretStore, MemorySecretStore

from conftest import DOMAIN


class TestYamlDirectory:
    def test_loads_list_and_wrapped_files(self, yaml_directory):
        directory = YamlDirectory(yaml_directory)

        names = [r["DisplayName"] for r in directory.query_all()]
        assert sorted(names) == ["DEV-A", "GPO-1", "OTHER-1", "PROD-A", "PROD-B"]

    def test_domain_filter(self, yaml_directory):
        directory = YamlDirectory(yaml_directory)

        names = [r["DisplayName"] for r in directory.query_all("OTHER.example.com")]
        assert names == ["OTHER-1"]

    def test_exact_name_is_case_insensitive(self, yaml_directory):
        directory = YamlDirectory(yaml_directory)

        found = directory.query_by_exact_name("prod-a", DOMAIN)
        assert [r["DisplayName"] for r in found] == ["PROD-A"]

    def test_exact_name_not_found(self, yaml_directory):
        directory = YamlDirectory(yaml_directory)

        with pytest.raises(IdentityNotFoundError) as exc_info:
            directory.query_by_exact_name("NoSuchGPO")
        assert str(exc_info.value) == "GPO not found: NoSuchGPO"

    def test_missing_path(self, tmp_path):
        with pytest.raises(DirectoryUnavailableError):
            YamlDirectory(tmp_path / "missing").query_all()

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "bad.yaml").write_text("- DisplayName: [unclosed\n")

        with pytest.raises(DirectoryUnavailableError):
            YamlDirectory(tmp_path).query_all()

    def test_failed_load_can_be_retried(self, tmp_path):
        (tmp_path / "a.yaml").write_text(yaml.dump([{"DisplayName": "GPO-1"}]))
        bad = tmp_path / "b.yaml"
        bad.write_text("- DisplayName: [unclosed\n")
        directory = YamlDirectory(tmp_path)

        for _ in range(3):
            with pytest.raises(DirectoryUnavailableError):
                directory.query_all()
        bad.write_text("")

        assert [r["DisplayName"] for r in directory.query_all()] == ["GPO-1"]

    def test_empty_file(self, tmp_path):
        (tmp_path / "empty.yaml").write_text("")

        assert YamlDirectory(tmp_path).query_all() == []


class TestSecretStores:
    def test_memory_store(self):
        store = MemorySecretStore()
        store.put("dc-admin", Credentials(username="CORP\\admin", password="pw"))
        store.put("backup", Credentials(username="svc_backup", password="pw2"))

        assert store.list() == ["backup", "dc-admin"]
        assert store.get("dc-admin").username == "CORP\\admin"

        store.delete("backup")
        assert store.list() == ["dc-admin"]

    def test_memory_store_missing(self):
        store = MemorySecretStore()

        with pytest.raises(SecretNotFoundError):
            store.get("nope")
        with pytest.raises(SecretNotFoundError):
            store.delete("nope")

    def test_blank_name_rejected(self):
        with pytest.raises(InvalidArgumentError):
            MemorySecretStore().put(" ", Credentials(username="u", password="p"))

    def test_fernet_round_trip(self, tmp_path):
        key = Fernet.generate_key()
        path = tmp_path / "secrets.json"
        FernetSecretStore(path, key=key).put(
            "dc-admin", Credentials(username="CORP\\admin", password="s3cret")
        )

        creds = FernetSecretStore(path, key=key).get("dc-admin")

        assert creds.username == "CORP\\admin"
        assert creds.password.get_secret_value() == "s3cret"
        assert b"s3cret" not in path.read_bytes()

    def test_fernet_creates_key_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(SECRET_KEY_ENV, raising=False)
        path = tmp_path / "store" / "secrets.json"

        store = FernetSecretStore(path)
        store.put("a", Credentials(username="u", password="p"))

        assert (tmp_path / "store" / "secrets.key").exists()
        assert FernetSecretStore(path).list() == ["a"]

    def test_fernet_key_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv(SECRET_KEY_ENV, Fernet.generate_key().decode())
        path = tmp_path / "secrets.json"

        FernetSecretStore(path).put("a", Credentials(username="u", password="p"))

        assert not (tmp_path / "secrets.key").exists()
        assert FernetSecretStore(path).get("a").username == "u"

    def test_fernet_wrong_key(self, tmp_path):
        path = tmp_path / "secrets.json"
        FernetSecretStore(path, key=Fernet.generate_key()).put(
            "a", Credentials(username="u", password="p")
        )

        with pytest.raises(SecretStoreError):
            FernetSecretStore(path, key=Fernet.generate_key()).list()

    def test_fernet_invalid_key(self, tmp_path):
        with pytest.raises(SecretStoreError):
            FernetSecretStore(tmp_path / "secrets.json", key="too-short")

    def test_fernet_delete_missing(self, tmp_path):
        store = FernetSecretStore(tmp_path / "secrets.json", key=Fernet.generate_key())

        with pytest.raises(SecretNotFoundError):
            store.delete("nope")

    def test_credentials_repr_hides_password(self):
        creds = Credentials(username="admin", password="s3cret")

        assert "s3cret" not in repr(creds)
        assert "s3cret" not in str(creds.password)


class TestConfig:
    def test_missing_file_uses_defaults(self, tmp_path):
        config = GpoManagerConfig.from_yaml(tmp_path / "gpomgr.yaml")

        assert config.default_domain is None
        assert config.hosts == {}

    def test_relative_paths_resolved(self, tmp_path):
        config_path = tmp_path / "gpomgr.yaml"
        with open(config_path, "w") as f:
            yaml.dump(
                {
                    "default_domain": DOMAIN,
                    "directory": "data",
                    "secret_store": "secrets.json",
                    "hosts": {"dc01": "remote/dc01", "dc02": "/srv/dc02"},
                },
                f,
            )

        config = GpoManagerConfig.from_yaml(config_path)

        assert config.default_domain == DOMAIN
        assert config.directory == tmp_path / "data"
        assert config.secret_store == tmp_path / "secrets.json"
        assert config.hosts["dc01"] == tmp_path / "remote" / "dc01"
        assert str(config.hosts["dc02"]) == "/srv/dc02"

    def test_invalid_config(self, tmp_path):
        config_path = tmp_path / "gpomgr.yaml"
        config_path.write_text("hosts: [not, a, mapping]\n")

        with pytest.raises(ConfigError):
            GpoManagerConfig.from_yaml(config_path)

    def test_non_mapping_config(self, tmp_path):
        config_path = tmp_path / "gpomgr.yaml"
        config_path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError):
            GpoManagerConfig.from_yaml(config_path)


class TestValidator:
    def _write(self, path, data):
        path.write_text(yaml.dump(data))

    def test_valid_directory(self, tmp_path):
        self._write(tmp_path / "gpos.yaml", [
            {"DisplayName": "GPO-1", "Id": "6ac1786c-016f-11d2-945f-00c04fb984f9",
             "GpoStatus": "AllSettingsEnabled"},
        ])

        assert Validator().validate_directory(tmp_path) == {}

    def test_missing_id(self, tmp_path):
        self._write(tmp_path / "gpos.yaml", {"gpos": [{"DisplayName": "GPO-1"}]})

        errors = Validator().validate_directory(tmp_path)

        assert str(tmp_path / "gpos.yaml") in errors

    def test_bad_status(self, tmp_path):
        self._write(tmp_path / "gpos.yaml", [
            {"DisplayName": "GPO-1", "Id": "6ac1786c-016f-11d2-945f-00c04fb984f9",
             "GpoStatus": "Sometimes"},
        ])

        errors = Validator().validate_directory(tmp_path)

        assert len(errors) == 1

    def test_duplicate_ids_across_files(self, tmp_path):
        record = {"DisplayName": "GPO-1", "Id": "6ac1786c-016f-11d2-945f-00c04fb984f9"}
        self._write(tmp_path / "a.yaml", [record])
        self._write(tmp_path / "b.yaml", [dict(record, DisplayName="GPO-1 copy")])

        errors = Validator().validate_directory(tmp_path)

        assert list(errors) == [str(tmp_path / "b.yaml")]
        assert "Duplicate Id" in errors[str(tmp_path / "b.yaml")][0]

    def test_sample_directory_is_valid(self, yaml_directory):
        assert Validator().validate_directory(yaml_directory) == {}

    def test_missing_directory(self, tmp_path):
        errors = Validator().validate_directory(tmp_path / "missing")

        assert errors == {str(tmp_path / "missing"): ["Directory not found"]}
