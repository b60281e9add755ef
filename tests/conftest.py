import pytest

from pocogen.parser import PocoParser
from pocogen.type_registry import TypeRegistry
from pocogen.types import HostType, TypeKind


@pytest.fixture
def registry():
    return TypeRegistry()


@pytest.fixture
def parse(registry):
    """Parse C# source into a name -> HostType map sharing the registry fixture"""
    def _parse(source: str) -> dict:
        assembly = PocoParser(source, registry).parse()
        return {t.name: t for t in assembly.types}
    return _parse


@pytest.fixture
def make_class(registry):
    def _make(namespace: str, name: str, kind: TypeKind = TypeKind.CLASS, **kwargs) -> HostType:
        kwargs.setdefault('base_type', registry.get('System.Object') if kind == TypeKind.CLASS else None)
        return registry.register(HostType(namespace, name, kind, **kwargs))
    return _make
