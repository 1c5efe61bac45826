"""Shared fixtures for rqm tests."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from rqm.core.models import OwnerReference, PersonAlias, Reference, Requirement, RequirementConfig


def make_config(*requirements: Requirement, aliases: list[PersonAlias] | None = None) -> RequirementConfig:
    """Build a document from top-level requirements."""
    return RequirementConfig(version="1.0", aliases=aliases or [], requirements=list(requirements))


# =============================================================================
# Document Fixtures
# =============================================================================


@pytest.fixture
def chain_config() -> RequirementConfig:
    """Requirement 1 -> Requirement 2 -> Requirement 3, all inline."""
    req3 = Requirement("Requirement 3")
    req2 = Requirement("Requirement 2", requirements=[req3])
    req1 = Requirement("Requirement 1", requirements=[req2])
    return make_config(req1)


@pytest.fixture
def mutual_config() -> RequirementConfig:
    """A and B reference each other."""
    return make_config(
        Requirement("A", requirements=[Reference("B")]),
        Requirement("B", requirements=[Reference("A")]),
    )


@pytest.fixture
def owned_config() -> RequirementConfig:
    """Document with an alias and requirements owned in every supported way."""
    return make_config(
        Requirement("By alias", owner=OwnerReference("alice")),
        Requirement("By email", owner=OwnerReference("a@b.com")),
        Requirement("By handle", owner=OwnerReference("@alice")),
        aliases=[PersonAlias(alias="alice", name="Alice", email="alice@example.com")],
    )


SAMPLE_YAML = """\
version: "1.0"
aliases:
  - alias: alice
    name: Alice Doe
    email: alice@example.com
requirements:
  - summary: User Authentication
    name: AUTH-001
    description: System must authenticate users
    owner: alice
    priority: high
    status: approved
    tags:
      - security
    requirements:
      - summary: Password Login
        owner: alice@example.com
      - summary: Token Refresh
        owner: "@alice"
        requirements:
          - Password Login
  - summary: Audit Logging
    requirements:
      - User Authentication
"""

CYCLIC_YAML = """\
version: "1.0"
requirements:
  - summary: A
    requirements:
      - B
  - summary: B
    requirements:
      - A
"""


@pytest.fixture
def sample_yaml() -> str:
    return SAMPLE_YAML


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    """A valid, acyclic requirements file."""
    path = tmp_path / "requirements.yml"
    path.write_text(SAMPLE_YAML)
    return path


@pytest.fixture
def cyclic_file(tmp_path: Path) -> Path:
    """A requirements file whose two requirements reference each other."""
    path = tmp_path / "cyclic.yml"
    path.write_text(CYCLIC_YAML)
    return path
