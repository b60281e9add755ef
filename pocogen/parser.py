"""C#-subset POCO source parser"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

from .errors import ParseError
from .type_registry import CSHARP_ALIASES, TypeRegistry
from .types import Attribute, EnumValue, HostMember, HostType, MemberKind, TypeKind

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r'''
    (?P<newline>\n)
  | (?P<space>[ \t\r\f\v]+)
  | (?P<string>@?"(?:[^"\\\n]|\\.)*")
  | (?P<char>'(?:[^'\\\n]|\\.)')
  | (?P<number>0[xX][0-9a-fA-F_]+[uUlL]*|\d[\d_]*(?:\.\d+)?[uUlLfFdDmM]*)
  | (?P<ident>@?[A-Za-z_]\w*)
  | (?P<punct>.)
''', re.VERBOSE)

_OPENERS = ('{', '(', '[')

TYPE_KEYWORDS = {
    'class': TypeKind.CLASS,
    'struct': TypeKind.STRUCT,
    'enum': TypeKind.ENUM,
    'interface': TypeKind.INTERFACE,
}

MODIFIERS = {
    'public', 'private', 'protected', 'internal', 'static', 'readonly', 'virtual',
    'override', 'abstract', 'sealed', 'partial', 'new', 'const', 'volatile',
    'unsafe', 'extern', 'async', 'required', 'event',
}


@dataclass
class Token:
    kind: str
    value: str
    line: int


@dataclass
class TypeExpr:
    """Unresolved type reference as written in source"""
    name: str
    arguments: list["TypeExpr"] = field(default_factory=list)
    nullable: bool = False
    ranks: list[int] = field(default_factory=list)
    line: int = 0


@dataclass
class _MemberSyntax:
    name: str
    type: TypeExpr
    kind: MemberKind
    attributes: tuple[Attribute, ...]
    is_public: bool
    is_static: bool


@dataclass
class _Declaration:
    host_type: HostType
    usings: list[str]
    type_parameters: list[str]
    bases: list[TypeExpr] = field(default_factory=list)
    members: list[_MemberSyntax] = field(default_factory=list)


@dataclass
class ParsedAssembly:
    """Types declared by one or more parsed sources, in source order"""
    types: list[HostType] = field(default_factory=list)

    def namespaces(self) -> list[str]:
        return sorted({t.namespace for t in self.types})


class PocoParser:
    """Parses C#-subset declarations of plain data types.

    Declarations are collected and registered first so that type
    references may point forward or into other sources; `resolve` then
    binds every reference against the registry.
    """

    def __init__(self, content: str, registry: Optional[TypeRegistry] = None):
        self.registry = registry if registry is not None else TypeRegistry()
        self.tokens = self._tokenize(self._strip_comments(content))
        self.pos = 0
        self._declarations: list[_Declaration] = []
        self._declared = False
        self._assembly: Optional[ParsedAssembly] = None

    def _strip_comments(self, content: str) -> str:
        content = re.sub(r'//.*$', '', content, flags=re.MULTILINE)
        # Keep line numbers stable across block comments
        content = re.sub(r'/\*.*?\*/', lambda m: '\n' * m.group(0).count('\n'),
                         content, flags=re.DOTALL)
        return content

    def _tokenize(self, content: str) -> list[Token]:
        tokens = []
        line = 1
        for m in _TOKEN_RE.finditer(content):
            kind = m.lastgroup
            if kind == 'newline':
                line += 1
            elif kind != 'space':
                tokens.append(Token(kind, m.group(), line))
        return tokens

    def parse(self) -> ParsedAssembly:
        self.declare()
        return self.resolve()

    def declare(self) -> "PocoParser":
        """Collect and register all type declarations"""
        if not self._declared:
            self._parse_block(namespace='', usings=[], closing=None)
            self._declared = True
        return self

    def resolve(self) -> ParsedAssembly:
        """Bind base types and member types of the declared types"""
        if self._assembly is not None:
            return self._assembly
        self.declare()
        for decl in self._declarations:
            self._resolve_header(decl)
        for decl in self._declarations:
            self._resolve_members(decl)
        self._assembly = ParsedAssembly([d.host_type.freeze() for d in self._declarations])
        return self._assembly

    # ── token helpers ─────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> Optional[Token]:
        i = self.pos + offset
        return self.tokens[i] if i < len(self.tokens) else None

    def _at(self, value: str, offset: int = 0) -> bool:
        tok = self._peek(offset)
        return tok is not None and tok.value == value

    def _line(self) -> Optional[int]:
        tok = self._peek()
        if tok is None:
            return self.tokens[-1].line if self.tokens else None
        return tok.line

    def _next(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise ParseError("Unexpected end of input", self._line())
        self.pos += 1
        return tok

    def _expect(self, value: str) -> Token:
        tok = self._next()
        if tok.value != value:
            raise ParseError(f"Expected '{value}' but found '{tok.value}'", tok.line)
        return tok

    def _accept(self, value: str) -> bool:
        if self._at(value):
            self.pos += 1
            return True
        return False

    def _ident(self) -> str:
        tok = self._next()
        if tok.kind != 'ident':
            raise ParseError(f"Expected identifier but found '{tok.value}'", tok.line)
        return tok.value.lstrip('@')

    def _qualified_name(self) -> str:
        if self._at('global') and self._at(':', 1) and self._at(':', 2):
            self.pos += 3
        parts = [self._ident()]
        while self._at('.') and self._peek(1) is not None and self._peek(1).kind == 'ident':
            self.pos += 1
            parts.append(self._ident())
        return '.'.join(parts)

    def _skip_balanced(self):
        """Skip a bracketed group starting at the current opening token"""
        pairs = {'{': '}', '(': ')', '[': ']'}
        stack = [pairs[self._next().value]]
        while stack:
            tok = self._next()
            if tok.value in pairs:
                stack.append(pairs[tok.value])
            elif tok.value == stack[-1]:
                stack.pop()

    def _skip_to_semicolon(self):
        while not self._at(';'):
            if self._peek() is not None and self._peek().value in _OPENERS:
                self._skip_balanced()
            else:
                self._next()
        self._next()

    def _skip_initializer(self):
        """Skip a field initializer up to the next declarator or semicolon"""
        angle = 0
        while angle or not (self._at(',') or self._at(';')):
            if self._peek() is not None and self._peek().value in _OPENERS:
                self._skip_balanced()
                continue
            tok = self._next()
            if tok.value == '<':
                angle += 1
            elif tok.value == '>' and angle:
                angle -= 1

    # ── declarations ──────────────────────────────────────────────

    def _parse_block(self, namespace: str, usings: list[str], closing: Optional[str]):
        usings = list(usings)
        while True:
            tok = self._peek()
            if tok is None:
                if closing is not None:
                    raise ParseError(f"Expected '{closing}'", self._line())
                return
            if closing is not None and tok.value == closing:
                self._next()
                return

            if tok.value == 'using':
                self._next()
                if self._accept('static'):
                    self._skip_to_semicolon()
                    continue
                name = self._qualified_name()
                if self._at('='):
                    self._skip_to_semicolon()
                    continue
                self._expect(';')
                usings.append(name)
            elif tok.value == 'namespace':
                self._next()
                name = self._qualified_name()
                full = f"{namespace}.{name}" if namespace else name
                if self._accept(';'):
                    namespace = full
                else:
                    self._expect('{')
                    self._parse_block(full, usings, '}')
            elif tok.value == ';':
                self._next()
            else:
                self._parse_type_declaration(namespace, usings)

    def _parse_attributes(self) -> tuple[Attribute, ...]:
        attributes = []
        while self._at('['):
            self._next()
            if self._peek(1) is not None and self._at(':', 1):
                self.pos += 2
            while True:
                attributes.append(self._parse_attribute())
                if not self._accept(','):
                    break
            self._expect(']')
        return tuple(attributes)

    def _parse_attribute(self) -> Attribute:
        name = self._qualified_name()
        arguments = []
        if self._accept('('):
            index = 0
            while not self._accept(')'):
                key = str(index)
                if self._peek() is not None and self._peek().kind == 'ident' \
                        and (self._at('=', 1) and not self._at('=', 2) or self._at(':', 1)):
                    key = self._ident()
                    self._next()
                value = []
                depth = 0
                while depth or not (self._at(',') or self._at(')')):
                    tok = self._next()
                    depth += tok.value == '('
                    depth -= tok.value == ')'
                    value.append(tok.value[1:-1] if tok.kind == 'string' else tok.value)
                arguments.append((key, ''.join(value)))
                index += 1
                self._accept(',')
        return Attribute(name, tuple(arguments))

    def _parse_modifiers(self) -> set[str]:
        modifiers = set()
        while self._peek() is not None and self._peek().value in MODIFIERS:
            modifiers.add(self._next().value)
        return modifiers

    def _parse_type_declaration(self, namespace: str, usings: list[str]):
        attributes = self._parse_attributes()
        modifiers = self._parse_modifiers()
        tok = self._next()
        if tok.value not in TYPE_KEYWORDS:
            raise ParseError(f"Expected type declaration but found '{tok.value}'", tok.line)
        kind = TYPE_KEYWORDS[tok.value]
        name = self._ident()

        type_parameters = []
        if self._accept('<'):
            while True:
                self._parse_attributes()
                if self._at('in') or self._at('out'):
                    self._next()
                type_parameters.append(self._ident())
                if not self._accept(','):
                    break
            self._expect('>')

        bases = []
        if self._accept(':'):
            while True:
                bases.append(self._parse_type_expr())
                if not self._accept(','):
                    break
        if self._at('where'):
            # generic constraints
            while not self._at('{'):
                self._next()

        host_type = HostType(
            namespace, name, kind,
            attributes=attributes,
            generic_parameters=tuple(self.registry.generic_parameter(p) for p in type_parameters),
            is_public='public' in modifiers,
        )
        decl = _Declaration(host_type, [namespace] + usings, type_parameters,
                            bases=[] if kind == TypeKind.ENUM else bases)
        self.registry.register(host_type)
        self._declarations.append(decl)
        logger.debug("Declared %s %s", kind.value, host_type.full_name)

        self._expect('{')
        if kind == TypeKind.ENUM:
            host_type.enum_values = tuple(self._parse_enum_body())
        else:
            self._parse_type_body(decl)
        self._accept(';')

    def _parse_enum_body(self) -> list[EnumValue]:
        values = []
        known = {}
        next_value = 0
        while not self._accept('}'):
            attributes = self._parse_attributes()
            name = self._ident()
            value = next_value
            if self._accept('='):
                start = self.pos
                while not (self._at(',') or self._at('}')):
                    self._next()
                value = _ConstantEvaluator(self.tokens[start:self.pos], known).evaluate()
            values.append(EnumValue(name, value, attributes))
            known[name] = value
            next_value = value + 1
            if not self._accept(','):
                self._expect('}')
                break
        return values

    def _parse_type_body(self, decl: _Declaration):
        is_interface = decl.host_type.kind == TypeKind.INTERFACE
        while not self._accept('}'):
            if self._accept(';'):
                continue
            line = self._line()
            attributes = self._parse_attributes()
            modifiers = self._parse_modifiers()

            if self._peek() is not None and self._peek().value in TYPE_KEYWORDS:
                logger.warning("Skipping nested type at line %s in %s", line, decl.host_type.full_name)
                while not self._at('{'):
                    self._next()
                self._skip_balanced()
                self._accept(';')
                continue

            if self._at(decl.host_type.name) and self._at('(', 1):
                # constructor
                self._next()
                self._skip_balanced()
                self._skip_member_body()
                continue

            if self._at('~'):
                self._next()
                self._next()
                self._skip_balanced()
                self._skip_member_body()
                continue

            member_type = self._parse_type_expr()
            if self._at('operator') or self._at('this') or self._at('implicit') or self._at('explicit'):
                while not (self._at('{') or self._at(';') or self._at('=')):
                    if self._at('(') or self._at('['):
                        self._skip_balanced()
                    else:
                        self._next()
                self._skip_member_body()
                continue

            name = self._ident()
            is_public = 'public' in modifiers or is_interface
            is_static = 'static' in modifiers or 'const' in modifiers

            if self._at('('):
                self._skip_balanced()
                self._skip_member_body()
            elif self._at('<'):
                # generic method
                while not self._at('('):
                    self._next()
                self._skip_balanced()
                self._skip_member_body()
            elif self._at('{') or self._at('=') and self._at('>', 1):
                if self._at('{'):
                    self._skip_balanced()
                    if self._accept('='):
                        self._skip_to_semicolon()
                else:
                    self._skip_to_semicolon()
                if 'event' not in modifiers:
                    decl.members.append(_MemberSyntax(
                        name, member_type, MemberKind.PROPERTY, attributes, is_public, is_static))
            else:
                names = [name]
                while True:
                    if self._accept('='):
                        self._skip_initializer()
                    if not self._accept(','):
                        break
                    names.append(self._ident())
                self._expect(';')
                if 'event' in modifiers:
                    continue
                for field_name in names:
                    decl.members.append(_MemberSyntax(
                        field_name, member_type, MemberKind.FIELD, attributes, is_public, is_static))

    def _skip_member_body(self):
        """Skip a method body, an expression body or a terminating semicolon"""
        while not (self._at('{') or self._at(';') or self._at('=')):
            self._next()
        if self._at('{'):
            self._skip_balanced()
        else:
            self._skip_to_semicolon()

    def _parse_type_expr(self) -> TypeExpr:
        line = self._line()
        if self._at('('):
            raise ParseError("Tuple type syntax is not supported", line)
        expr = TypeExpr(self._qualified_name(), line=line)
        if self._accept('<'):
            while True:
                expr.arguments.append(self._parse_type_expr())
                if not self._accept(','):
                    break
            self._expect('>')
        if self._accept('?'):
            expr.nullable = True
        while self._at('[') and (self._at(']', 1) or self._at(',', 1)):
            self._next()
            rank = 1
            while self._accept(','):
                rank += 1
            self._expect(']')
            expr.ranks.append(rank)
        return expr

    # ── resolution ────────────────────────────────────────────────

    def _resolve_header(self, decl: _Declaration):
        host_type = decl.host_type
        base_type = None
        interfaces = []
        for expr in decl.bases:
            resolved = self._resolve_type_expr(expr, decl)
            if resolved.kind == TypeKind.INTERFACE or host_type.kind != TypeKind.CLASS:
                interfaces.append(resolved)
            elif base_type is None:
                base_type = resolved
            else:
                raise ParseError(f"{host_type.full_name} has more than one base class", expr.line)

        if base_type is None:
            base_name = {
                TypeKind.CLASS: 'System.Object',
                TypeKind.STRUCT: 'System.ValueType',
                TypeKind.ENUM: 'System.Enum',
            }.get(host_type.kind)
            base_type = self.registry.get(base_name) if base_name else None
        host_type.base_type = base_type
        host_type.interfaces = tuple(interfaces)

    def _resolve_members(self, decl: _Declaration):
        properties = []
        fields = []
        for member in decl.members:
            host_member = HostMember(
                name=member.name,
                type=self._resolve_type_expr(member.type, decl),
                kind=member.kind,
                attributes=member.attributes,
                is_public=member.is_public,
                is_static=member.is_static,
            )
            (properties if member.kind == MemberKind.PROPERTY else fields).append(host_member)
        decl.host_type.properties = tuple(properties)
        decl.host_type.fields = tuple(fields)

    def _resolve_type_expr(self, expr: TypeExpr, decl: _Declaration) -> HostType:
        if not expr.arguments and expr.name in decl.type_parameters:
            resolved = self.registry.generic_parameter(expr.name)
        else:
            definition = self._lookup(expr, decl)
            if expr.arguments:
                arguments = [self._resolve_type_expr(a, decl) for a in expr.arguments]
                resolved = self.registry.make_generic(definition, arguments)
            else:
                resolved = definition

        if expr.nullable and resolved.is_value_type and resolved.definition is None:
            resolved = self.registry.make_generic(self.registry.get('System.Nullable`1'), [resolved])
        for rank in expr.ranks:
            resolved = self.registry.make_array(resolved, rank)
        return resolved

    def _lookup(self, expr: TypeExpr, decl: _Declaration) -> HostType:
        name = CSHARP_ALIASES.get(expr.name, expr.name)
        arity = len(expr.arguments)
        found = self.registry.find(name, arity, self._search_namespaces(decl))
        if found is not None:
            return found

        namespace, _, simple = name.rpartition('.')
        logger.warning("Unresolved type '%s' at line %s; treating it as external", expr.name, expr.line)
        external = HostType(
            namespace, simple, TypeKind.CLASS,
            generic_parameters=tuple(self.registry.generic_parameter(f"T{i + 1}") for i in range(arity)),
        )
        return self.registry.register(external.freeze())

    @staticmethod
    def _search_namespaces(decl: _Declaration) -> list[str]:
        namespaces = []
        namespace = decl.usings[0]
        while namespace:
            namespaces.append(namespace)
            namespace = namespace.rpartition('.')[0]
        namespaces.extend(decl.usings[1:])
        return namespaces


class _ConstantEvaluator:
    """Evaluates integer constant expressions in enum member initializers"""

    BINARY = [('|',), ('^',), ('&',), ('<<', '>>'), ('+', '-'), ('*', '/', '%')]

    def __init__(self, tokens: list[Token], known: dict[str, int]):
        self.tokens = self._join_shifts(tokens)
        self.known = known
        self.pos = 0
        self.line = tokens[0].line if tokens else None

    @staticmethod
    def _join_shifts(tokens: list[Token]) -> list[Token]:
        joined = []
        for tok in tokens:
            if joined and tok.value in '<>' and joined[-1].value == tok.value:
                joined[-1] = Token('punct', tok.value * 2, tok.line)
            else:
                joined.append(tok)
        return joined

    def evaluate(self) -> int:
        if not self.tokens:
            raise ParseError("Missing enum value", self.line)
        value = self._binary(0)
        if self.pos != len(self.tokens):
            raise ParseError(f"Unexpected '{self.tokens[self.pos].value}' in enum value", self.line)
        return value

    def _binary(self, level: int) -> int:
        if level == len(self.BINARY):
            return self._unary()
        value = self._binary(level + 1)
        while self.pos < len(self.tokens) and self.tokens[self.pos].value in self.BINARY[level]:
            op = self.tokens[self.pos].value
            self.pos += 1
            rhs = self._binary(level + 1)
            value = {
                '|': lambda a, b: a | b, '^': lambda a, b: a ^ b, '&': lambda a, b: a & b,
                '<<': lambda a, b: a << b, '>>': lambda a, b: a >> b,
                '+': lambda a, b: a + b, '-': lambda a, b: a - b,
                '*': lambda a, b: a * b, '/': lambda a, b: int(a / b), '%': lambda a, b: a % b,
            }[op](value, rhs)
        return value

    def _unary(self) -> int:
        if self.pos >= len(self.tokens):
            raise ParseError("Incomplete enum value", self.line)
        tok = self.tokens[self.pos]
        self.pos += 1
        if tok.value == '-':
            return -self._unary()
        if tok.value == '~':
            return ~self._unary()
        if tok.value == '(':
            # cast such as (int)A, or a parenthesized expression
            if self.pos + 1 < len(self.tokens) and self.tokens[self.pos + 1].value == ')' \
                    and self.tokens[self.pos].value in CSHARP_ALIASES:
                self.pos += 2
                return self._unary()
            value = self._binary(0)
            if self.pos >= len(self.tokens) or self.tokens[self.pos].value != ')':
                raise ParseError("Expected ')' in enum value", self.line)
            self.pos += 1
            return value
        if tok.kind == 'number':
            text = tok.value.replace('_', '').rstrip('uUlL')
            return int(text, 16) if text.lower().startswith('0x') else int(text)
        if tok.kind == 'char':
            return ord(tok.value[1:-1].encode().decode('unicode_escape'))
        if tok.kind == 'ident':
            name = tok.value.lstrip('@')
            # qualified reference such as Color.Red
            while self.pos + 1 < len(self.tokens) and self.tokens[self.pos].value == '.':
                name = self.tokens[self.pos + 1].value
                self.pos += 2
            if name in self.known:
                return self.known[name]
        raise ParseError(f"Unsupported enum value '{tok.value}'", tok.line)


def parse_files(paths: Iterable[Union[str, Path]],
                registry: Optional[TypeRegistry] = None) -> ParsedAssembly:
    """Parse several sources into one assembly sharing a registry"""
    registry = registry if registry is not None else TypeRegistry()
    parsers = []
    for path in paths:
        logger.debug("Parsing %s", path)
        parsers.append(PocoParser(Path(path).read_text(encoding="utf-8"), registry).declare())
    assembly = ParsedAssembly()
    for parser in parsers:
        assembly.types.extend(parser.resolve().types)
    return assembly
