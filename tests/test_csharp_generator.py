"""Tests for rendering client declarations as C# source."""

import io
import logging

import pytest

from pocogen.csharp_generator import CSharpGenerator, to_csharp
from pocogen.errors import InvalidArgumentError
from pocogen.types import (
    ArrayRef, ClassDecl, ClientNamespace, CompileUnit, EnumDecl, EnumMember, GenericRef, MapRef,
    Member, MemberKind, MirroredTypeRef, OptionalRef, PairRef, PrimitiveRef, RawPlatformRef,
    TupleRef, ValueDecl,
)

INT = PrimitiveRef('System.Int32')
ADDRESS = MirroredTypeRef('Demo.Client', 'Address')


class TestTypeSyntax:

    @pytest.mark.parametrize("type_ref, expected", [
        (None, 'void'),
        (INT, 'int'),
        (PrimitiveRef('System.Guid'), 'System.Guid'),
        (RawPlatformRef('System.Object'), 'object'),
        (RawPlatformRef('Newtonsoft.Json.Linq.JObject'), 'Newtonsoft.Json.Linq.JObject'),
        (ADDRESS, 'Demo.Client.Address'),
        (MirroredTypeRef('', 'Global'), 'Global'),
        (ArrayRef(ADDRESS), 'Demo.Client.Address[]'),
        (ArrayRef(INT, 3), 'int[,,]'),
        (ArrayRef(ArrayRef(INT)), 'int[][]'),
        (OptionalRef(INT), 'System.Nullable<int>'),
        (TupleRef(2, (INT, ADDRESS)), 'System.Tuple<int, Demo.Client.Address>'),
        (MapRef(PrimitiveRef('System.String'), ArrayRef(INT)),
         'System.Collections.Generic.Dictionary<string, int[]>'),
        (PairRef(INT, INT), 'System.Collections.Generic.KeyValuePair<int, int>'),
        (GenericRef('Vendor.Page', (ADDRESS,)), 'Vendor.Page<Demo.Client.Address>'),
        (GenericRef('Vendor.Plain'), 'Vendor.Plain'),
    ])
    def test_to_csharp(self, type_ref, expected):
        assert to_csharp(type_ref) == expected

    def test_unknown_reference(self):
        with pytest.raises(TypeError):
            to_csharp("System.Int32")


@pytest.fixture
def unit():
    return CompileUnit([
        ClientNamespace('Demo.Client', [
            EnumDecl('Color', 'Demo.Client', [
                EnumMember('Red', doc=['Warm']),
                EnumMember('Blue', 5),
            ], doc=['Colors']),
            ClassDecl('Person', 'Demo.Client', base_type=MirroredTypeRef('Demo.Client', 'Entity'), members=[
                Member('Name', PrimitiveRef('System.String'), required=True, doc=['Full name']),
                Member('Count', INT, origin=MemberKind.FIELD),
            ]),
            ClassDecl('Envelope', 'Demo.Client', base_type=RawPlatformRef('System.Object'),
                      type_parameters=('T',), members=[Member('Payload', RawPlatformRef('T'))]),
            ValueDecl('Point', 'Demo.Client', members=[
                Member('X', INT, origin=MemberKind.FIELD, kind=MemberKind.FIELD),
            ]),
        ]),
    ])


class TestGenerate:

    def test_document(self, unit):
        assert CSharpGenerator(unit).generate().splitlines()[7:] == [
            'namespace Demo.Client',
            '{',
            '    /// <summary>',
            '    /// Colors',
            '    /// </summary>',
            '    public enum Color',
            '    {',
            '        /// <summary>',
            '        /// Warm',
            '        /// </summary>',
            '        Red,',
            '        Blue = 5,',
            '    }',
            '',
            '    public class Person : Demo.Client.Entity',
            '    {',
            '        /// <summary>',
            '        /// Full name',
            '        /// </summary>',
            '        [System.ComponentModel.DataAnnotations.Required()]',
            '        public string Name { get; set; }',
            '',
            '        public int Count { get; set; }',
            '    }',
            '',
            '    public class Envelope<T>',
            '    {',
            '        public T Payload { get; set; }',
            '    }',
            '',
            '    public struct Point',
            '    {',
            '        public int X;',
            '    }',
            '}',
        ]

    def test_header(self, unit):
        code = CSharpGenerator(unit).generate()
        assert code.startswith('//----')
        assert '<auto-generated>' in code

    def test_empty_unit(self):
        code = CSharpGenerator(CompileUnit()).generate()
        assert 'namespace' not in code

    def test_base_without_namespace_is_kept(self):
        unit = CompileUnit([ClientNamespace('Demo.Client', [
            ClassDecl('Contact', 'Demo.Client', base_type=RawPlatformRef('Vendor.Base')),
        ])])
        assert 'public class Contact : Vendor.Base' in CSharpGenerator(unit).generate()

    def test_generic_base(self):
        unit = CompileUnit([ClientNamespace('Demo.Client', [
            ClassDecl('Bag', 'Demo.Client', base_type=GenericRef('System.Collections.Generic.List', (INT,))),
        ])])
        assert 'public class Bag : System.Collections.Generic.List<int>' in CSharpGenerator(unit).generate()


class TestOutput:

    def test_write_code(self, unit):
        buffer = io.StringIO()
        CSharpGenerator(unit).write_code(buffer)
        assert buffer.getvalue() == CSharpGenerator(unit).generate()

    def test_write_code_requires_writer(self, unit):
        with pytest.raises(InvalidArgumentError):
            CSharpGenerator(unit).write_code(None)

    def test_save_code_to_file(self, unit, tmp_path):
        path = tmp_path / 'Demo.Client.cs'
        assert CSharpGenerator(unit).save_code_to_file(path)
        assert path.read_text(encoding='utf-8') == CSharpGenerator(unit).generate()

    @pytest.mark.parametrize("file_name", ['', None])
    def test_save_requires_file_name(self, unit, file_name):
        with pytest.raises(InvalidArgumentError):
            CSharpGenerator(unit).save_code_to_file(file_name)

    def test_write_failure_is_reported(self, unit, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger='pocogen.csharp_generator'):
            assert not CSharpGenerator(unit).save_code_to_file(tmp_path)
        assert 'Cannot write' in caplog.text
