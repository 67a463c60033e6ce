"""
Shared fixtures for gpomgr tests.
"""

from datetime import datetime

import pytest
import yaml

from gpomgr.plugins.directory import MemoryDirectory


DOMAIN = "corp.example.com"

GPO_IDS = {
    "GPO-1": "6ac1786c-016f-11d2-945f-00c04fb984f9",
    "PROD-A": "31b2f340-016d-11d2-945f-00c04fb984f9",
    "PROD-B": "0d3a6b5e-3c1f-4b7a-9e1d-2f4c5a6b7c8d",
    "DEV-A": "9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d",
    "OTHER-1": "11111111-2222-4333-8444-555555555555",
}


def make_raw(name: str, domain: str = DOMAIN, **overrides) -> dict:
    record = {
        "DisplayName": name,
        "Id": GPO_IDS.get(name, "aaaaaaaa-bbbb-4ccc-8ddd-eeeeeeeeeeee"),
        "DomainName": domain,
        "CreationTime": datetime(2023, 5, 1, 9, 30),
        "ModificationTime": datetime(2024, 2, 14, 17, 5),
        "Owner": "CORP\\Domain Admins",
        "Description": f"{name} settings",
        "GpoStatus": "AllSettingsEnabled",
    }
    record.update(overrides)
    return record


@pytest.fixture
def raw_records():
    return [
        make_raw("GPO-1"),
        make_raw("PROD-A"),
        make_raw("PROD-B", GpoStatus="AllSettingsDisabled"),
        make_raw("DEV-A"),
        make_raw("OTHER-1", domain="other.example.com"),
    ]


@pytest.fixture
def directory(raw_records):
    return MemoryDirectory(raw_records)


@pytest.fixture
def yaml_directory(tmp_path, raw_records):
    """Write the sample records to a directory of YAML files."""
    root = tmp_path / "directory"
    (root / "corp").mkdir(parents=True)
    (root / "other").mkdir(parents=True)

    corp = [r for r in raw_records if r["DomainName"] == DOMAIN]
    other = [r for r in raw_records if r["DomainName"] != DOMAIN]

    with open(root / "corp" / "gpos.yaml", "w") as f:
        yaml.dump(corp, f)
    with open(root / "other" / "gpos.yaml", "w") as f:
        yaml.dump({"gpos": other}, f)

    return root
