"""Tests for parsing C#-subset POCO declarations."""

import logging
from dataclasses import FrozenInstanceError

import pytest

from pocogen.errors import DuplicateTypeError, ParseError
from pocogen.parser import PocoParser, parse_files
from pocogen.type_registry import TypeRegistry
from pocogen.types import MemberKind, TypeKind


class TestDeclarations:

    def test_namespaces_and_kinds(self, parse):
        types = parse("""
            namespace Outer {
                namespace Inner {
                    public class Box { }
                    public struct Point { }
                    public enum Color { Red }
                    public interface IShape { }
                    class Hidden { }
                }
            }
        """)
        assert types["Box"].full_name == "Outer.Inner.Box"
        assert types["Box"].kind == TypeKind.CLASS
        assert types["Point"].kind == TypeKind.STRUCT
        assert types["Color"].kind == TypeKind.ENUM
        assert types["IShape"].kind == TypeKind.INTERFACE
        assert types["Box"].is_public
        assert not types["Hidden"].is_public

    def test_file_scoped_namespace(self, parse):
        types = parse("namespace Demo.Flat;\n\npublic class Item { }")
        assert types["Item"].full_name == "Demo.Flat.Item"

    def test_default_base_types(self, parse):
        types = parse("namespace Demo { public class A { } public struct B { } public enum C { X } }")
        assert types["A"].base_type.full_name == "System.Object"
        assert types["B"].base_type.full_name == "System.ValueType"
        assert types["C"].base_type.full_name == "System.Enum"

    def test_base_class_and_interfaces(self, parse):
        types = parse("""
            namespace Demo {
                public interface IHasName { string Name { get; } }
                public class Base { }
                public class Derived : Base, IHasName { public string Name { get; set; } }
                public struct Value : IHasName { public string Name { get; set; } }
            }
        """)
        derived = types["Derived"]
        assert derived.base_type == types["Base"]
        assert derived.interfaces == (types["IHasName"],)
        assert types["Value"].interfaces == (types["IHasName"],)
        assert types["IHasName"].properties[0].is_public

    def test_generic_definition(self, parse):
        types = parse("""
            namespace Demo {
                public class Pair<TFirst, TSecond> where TFirst : class, new() where TSecond : struct {
                    public TFirst First { get; set; }
                    public TSecond Second { get; set; }
                }
            }
        """)
        pair = types["Pair"]
        assert pair.full_name == "Demo.Pair`2"
        assert [p.name for p in pair.generic_parameters] == ["TFirst", "TSecond"]
        assert pair.properties[0].type.kind == TypeKind.GENERIC_PARAMETER

    def test_duplicate_type(self):
        with pytest.raises(DuplicateTypeError):
            PocoParser("namespace Demo { class A { } class A { } }").parse()


class TestMembers:

    def test_properties_and_fields(self, parse):
        types = parse("""
            namespace Demo {
                public class Holder {
                    public int Count { get; private set; } = 3;
                    public string Label => "x";
                    public int a = 1, b, c = (2 + 3);
                    public Dictionary<string, int> Map = new Dictionary<string, int>();
                    private int hidden;
                    public static int Shared;
                    public const int Max = 10;
                }
            }
        """)
        holder = types["Holder"]
        assert [(p.name, p.kind) for p in holder.properties] == [
            ("Count", MemberKind.PROPERTY), ("Label", MemberKind.PROPERTY),
        ]
        fields = {f.name: f for f in holder.fields}
        assert list(fields) == ["a", "b", "c", "Map", "hidden", "Shared", "Max"]
        assert not fields["hidden"].is_public
        assert fields["Shared"].is_static
        assert fields["Max"].is_static

    def test_methods_constructors_and_events_are_skipped(self, parse):
        types = parse("""
            namespace Demo {
                public class Service {
                    public Service(int x) : base() { Value = x; }
                    ~Service() { }
                    public int Value { get; set; }
                    public int Twice() => Value * 2;
                    public T Echo<T>(T item) where T : class { return item; }
                    public abstract void Run();
                    public int this[int i] { get { return i; } }
                    public static Service operator +(Service a, Service b) { return a; }
                    public event System.EventHandler Changed;
                    public class Nested { public int Deep { get; set; } }
                }
            }
        """)
        service = types["Service"]
        assert [p.name for p in service.properties] == ["Value"]
        assert service.fields == ()
        assert "Nested" not in types

    def test_attributes(self, parse):
        types = parse("""
            namespace Demo {
                [DataContract(Namespace = "urn:demo")]
                public class Tagged {
                    [DataMember(Name = "n", IsRequired = true), Obsolete]
                    [JsonProperty(Required = Required.Always)]
                    public string Name { get; set; }
                }
            }
        """)
        tagged = types["Tagged"]
        assert tagged.attributes[0].name == "DataContract"
        assert tagged.attributes[0].get("Namespace") == "urn:demo"
        name = tagged.properties[0]
        assert [a.name for a in name.attributes] == ["DataMember", "Obsolete", "JsonProperty"]
        assert name.attributes[0].get("IsRequired") == "true"
        assert name.attributes[0].get("Name") == "n"
        assert name.attributes[2].get("Required") == "Required.Always"

    def test_comments_are_ignored(self, parse):
        types = parse("""
            namespace Demo {
                /// <summary>Doc</summary>
                public class Noted {
                    /* public int Gone { get; set; } */
                    public int Kept { get; set; } // trailing
                }
            }
        """)
        assert [p.name for p in types["Noted"].properties] == ["Kept"]


class TestTypeReferences:

    SOURCE = """
        using System;
        using System.Collections.Generic;

        namespace Demo.Data {
            public struct Point { }
            public enum Color { Red }
            public class Shape { }

            public class Sample {
                public int? MaybeInt { get; set; }
                public Point? MaybePoint { get; set; }
                public Color? MaybeColor { get; set; }
                public string? MaybeText { get; set; }
                public Shape? MaybeShape { get; set; }
                public int[] Numbers { get; set; }
                public int[,] Grid { get; set; }
                public int[][] Jagged { get; set; }
                public List<Shape> Shapes { get; set; }
                public IDictionary<string, List<int?>> Nested { get; set; }
                public System.Guid Id { get; set; }
                public global::System.DateTime When { get; set; }
                public Guid Other { get; set; }
            }
        }
    """

    @pytest.fixture
    def members(self, parse):
        types = parse(self.SOURCE)
        return {p.name: p.type for p in types["Sample"].properties}

    def test_nullable_value_types(self, members):
        assert members["MaybeInt"].full_name == "System.Nullable`1[System.Int32]"
        assert members["MaybePoint"].full_name == "System.Nullable`1[Demo.Data.Point]"
        assert members["MaybeColor"].full_name == "System.Nullable`1[Demo.Data.Color]"

    def test_nullable_reference_types(self, members):
        assert members["MaybeText"].full_name == "System.String"
        assert members["MaybeShape"].full_name == "Demo.Data.Shape"

    def test_arrays(self, members):
        assert members["Numbers"].full_name == "System.Int32[]"
        assert members["Grid"].rank == 2
        assert members["Jagged"].element_type.is_array

    def test_generics(self, members):
        assert members["Shapes"].full_name == "System.Collections.Generic.List`1[Demo.Data.Shape]"
        nested = members["Nested"]
        assert nested.definition.full_name == "System.Collections.Generic.IDictionary`2"
        assert nested.arguments[1].arguments[0].full_name == "System.Nullable`1[System.Int32]"

    def test_qualified_and_imported_names(self, members):
        assert members["Id"].full_name == "System.Guid"
        assert members["When"].full_name == "System.DateTime"
        assert members["Other"] is members["Id"]

    def test_instantiations_share_identity(self, parse):
        types = parse("""
            namespace Demo {
                public class A { public System.Collections.Generic.List<int> X { get; set; } }
                public class B { public System.Collections.Generic.List<int> Y { get; set; } }
            }
        """)
        assert types["A"].properties[0].type is types["B"].properties[0].type

    def test_parent_namespace_lookup(self, parse):
        types = parse("""
            namespace Demo { public class Root { } }
            namespace Demo.Sub { public class Leaf { public Root Parent { get; set; } } }
        """)
        assert types["Leaf"].properties[0].type == types["Root"]

    def test_unresolved_type_becomes_external(self, parse, caplog):
        with caplog.at_level(logging.WARNING, logger="pocogen.parser"):
            types = parse("namespace Demo { public class A { public Vendor.Money Price { get; set; } } }")
        price = types["A"].properties[0].type
        assert price.full_name == "Vendor.Money"
        assert price.kind == TypeKind.CLASS
        assert "Vendor.Money" in caplog.text

    def test_tuple_syntax_is_rejected(self):
        with pytest.raises(ParseError):
            PocoParser("namespace Demo { public class A { public (int, int) P { get; set; } } }").parse()


class TestEnums:

    def test_values(self, parse):
        types = parse("""
            namespace Demo {
                [Flags]
                public enum Access : byte {
                    None = 0,
                    Read = 1 << 0,
                    Write = 1 << 1,
                    ReadWrite = Read | Write,
                    Hex = 0x10,
                    Next,
                    Negative = -2,
                    Cast = (int)Access.Hex + 1,
                    Letter = 'A',
                }
            }
        """)
        values = [(v.name, v.value) for v in types["Access"].enum_values]
        assert values == [
            ("None", 0), ("Read", 1), ("Write", 2), ("ReadWrite", 3), ("Hex", 16),
            ("Next", 17), ("Negative", -2), ("Cast", 17), ("Letter", 65),
        ]
        assert types["Access"].has_attribute("Flags")

    def test_unknown_reference_is_an_error(self):
        with pytest.raises(ParseError) as excinfo:
            PocoParser("namespace Demo {\n public enum E {\n A = Missing\n }\n}").parse()
        assert excinfo.value.line == 3


class TestErrors:

    def test_unexpected_token_reports_line(self):
        with pytest.raises(ParseError) as excinfo:
            PocoParser("namespace Demo {\n\n  public delegate void Handler();\n}").parse()
        assert excinfo.value.line == 3

    def test_unterminated_namespace(self):
        with pytest.raises(ParseError):
            PocoParser("namespace Demo { public class A { }").parse()


class TestMultipleFiles:

    def test_references_across_files(self, tmp_path):
        first = tmp_path / "Orders.cs"
        first.write_text("namespace Shop { public class Order { public Customer Buyer { get; set; } } }")
        second = tmp_path / "Customers.cs"
        second.write_text("namespace Shop { public class Customer { public Order[] Orders { get; set; } } }")

        registry = TypeRegistry()
        assembly = parse_files([first, second], registry)

        order, customer = assembly.types
        assert order.properties[0].type == customer
        assert customer.properties[0].type.element_type == order
        assert assembly.namespaces() == ["Shop"]
        assert registry.get("Shop.Order") is order

class TestResolvedTypes:

    def test_resolved_types_are_frozen(self, registry):
        parser = PocoParser("namespace Demo { public class A { public Vendor.Money Price { get; set; } } }", registry)
        a = parser.parse().types[0]
        with pytest.raises(FrozenInstanceError):
            a.base_type = None
        with pytest.raises(FrozenInstanceError):
            a.properties[0].type.name = "Cash"
        assert parser.resolve().types == [a]
