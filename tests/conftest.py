from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


PROJECT_MODULES = ("catalog_models", "clashing_models")


@pytest.fixture
def sample_project(tmp_path: Path) -> Iterator[Path]:
    project_dir = tmp_path / "project"
    project_dir.mkdir(parents=True)

    (project_dir / "schemagen.yaml").write_text(
        """
version: v1

generator:
  inline_enums: false
  polymorphic_schemas: false
  filters:
    - python-type
    - type: docstring
      with:
        overwrite: false

serializer:
  string_enums: true
  enum_naming: camel

output:
  format: jsonschema
  path: build/schema/{id}.json
""".strip()
        + "\n",
        encoding="utf-8",
    )

    (project_dir / "catalog_models.py").write_text(
        '''
import enum
from dataclasses import dataclass, field
from typing import Optional


class Color(enum.Enum):
    DARK_RED = 1
    LIGHT_GREEN = 2


@dataclass
class Product:
    """A catalog product.

    Products may be grouped under a parent product.
    """

    sku: str
    price: float = 0.0
    color: Optional[Color] = None
    tags: list[str] = field(default_factory=list)
    parent: Optional["Product"] = None
'''.strip()
        + "\n",
        encoding="utf-8",
    )

    (project_dir / "clashing_models.py").write_text(
        '''
from dataclasses import dataclass


class Billing:
    @dataclass
    class Address:
        street: str = ""


class Shipping:
    @dataclass
    class Address:
        street: str = ""


@dataclass
class Order:
    billing: Billing.Address
    shipping: Shipping.Address
'''.strip()
        + "\n",
        encoding="utf-8",
    )

    yield project_dir

    for name in PROJECT_MODULES:
        sys.modules.pop(name, None)
    for entry in {str(project_dir), str(project_dir.resolve())}:
        if entry in sys.path:
            sys.path.remove(entry)
