"""Selection of the types and members exposed to clients"""

from enum import IntEnum, IntFlag
from typing import Iterable

from .errors import InvalidArgumentError
from .types import HostMember, HostType, find_attribute


class CherryPickingMethods(IntFlag):
    """Attribute conventions used to pick types and members.

    ALL is the empty flag: every public type and member is picked.
    """
    ALL = 0
    DATA_CONTRACT = 1
    NEWTONSOFT_JSON = 2
    SERIALIZABLE = 4
    ASP_NET = 8


class CherryType(IntEnum):
    """Visibility tier of a member; BIG_CHERRY members are required"""
    NONE = 0
    CHERRY = 1
    BIG_CHERRY = 2


METHOD_NAMES = {
    'all': CherryPickingMethods.ALL,
    'datacontract': CherryPickingMethods.DATA_CONTRACT,
    'newtonsoftjson': CherryPickingMethods.NEWTONSOFT_JSON,
    'serializable': CherryPickingMethods.SERIALIZABLE,
    'aspnet': CherryPickingMethods.ASP_NET,
}


def parse_methods(names: Iterable[str]) -> CherryPickingMethods:
    """Combine method names such as 'datacontract' into flags"""
    methods = CherryPickingMethods.ALL
    for name in names:
        key = name.strip().lower().replace('_', '').replace('-', '')
        if key not in METHOD_NAMES:
            raise InvalidArgumentError(f"Unknown cherry picking method: {name}")
        methods |= METHOD_NAMES[key]
    return methods


def _is_true(value) -> bool:
    return value is not None and value.strip().lower() == 'true'


def _by_data_contract(member: HostMember) -> CherryType:
    if member.has_attribute('IgnoreDataMember'):
        return CherryType.NONE
    attr = find_attribute(member.attributes, 'DataMember')
    if attr is None:
        return CherryType.NONE
    return CherryType.BIG_CHERRY if _is_true(attr.get('IsRequired')) else CherryType.CHERRY


def _by_newtonsoft(member: HostMember) -> CherryType:
    if member.has_attribute('JsonIgnore'):
        return CherryType.NONE
    if member.has_attribute('JsonRequired'):
        return CherryType.BIG_CHERRY
    attr = find_attribute(member.attributes, 'JsonProperty')
    if attr is not None:
        required = (attr.get('Required') or '').rsplit('.', 1)[-1]
        if required in ('Always', 'AllowNull'):
            return CherryType.BIG_CHERRY
    return CherryType.CHERRY


def _by_serializable(member: HostMember) -> CherryType:
    if member.has_attribute('NonSerialized'):
        return CherryType.NONE
    return CherryType.CHERRY


def _by_asp_net(member: HostMember) -> CherryType:
    if member.has_attribute('JsonIgnore'):
        return CherryType.NONE
    if member.has_attribute('Required'):
        return CherryType.BIG_CHERRY
    return CherryType.CHERRY


_MEMBER_RULES = [
    (CherryPickingMethods.DATA_CONTRACT, _by_data_contract, 'IgnoreDataMember'),
    (CherryPickingMethods.NEWTONSOFT_JSON, _by_newtonsoft, 'JsonIgnore'),
    (CherryPickingMethods.SERIALIZABLE, _by_serializable, 'NonSerialized'),
    (CherryPickingMethods.ASP_NET, _by_asp_net, 'JsonIgnore'),
]


def get_member_cherry_type(member: HostMember, methods: CherryPickingMethods) -> CherryType:
    """Highest tier any enabled method grants; an explicit ignore always wins"""
    if methods == CherryPickingMethods.ALL:
        return CherryType.BIG_CHERRY if member.has_attribute('Required') else CherryType.CHERRY

    result = CherryType.NONE
    for flag, rule, ignore in _MEMBER_RULES:
        if not methods & flag:
            continue
        if member.has_attribute(ignore):
            return CherryType.NONE
        result = max(result, rule(member))
    return result


_TYPE_ATTRIBUTES = [
    (CherryPickingMethods.DATA_CONTRACT, 'DataContract'),
    (CherryPickingMethods.NEWTONSOFT_JSON, 'JsonObject'),
    (CherryPickingMethods.SERIALIZABLE, 'Serializable'),
]


def is_cherry_type(host_type: HostType, methods: CherryPickingMethods) -> bool:
    """Check if a declared type should be mirrored under the given methods"""
    if not host_type.is_public:
        return False
    if not (host_type.is_class_or_struct or host_type.is_enum):
        return False
    if methods == CherryPickingMethods.ALL or methods & CherryPickingMethods.ASP_NET:
        return True
    return any(methods & flag and host_type.has_attribute(attr)
               for flag, attr in _TYPE_ATTRIBUTES)


def get_cherry_types(types: Iterable[HostType], methods: CherryPickingMethods) -> list[HostType]:
    """Pick the declared types to mirror, keeping their order"""
    return [t for t in types if is_cherry_type(t, methods)]
