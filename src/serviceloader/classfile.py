"""Reader for the metadata section of JVM class files.

Only the parts needed to reason about type relationships are interpreted:
access flags, the class's own name, its super class, its interfaces and the
``InnerClasses`` attribute. Field and method tables are skipped.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntFlag

from serviceloader.errors import ClassFormatError


CLASS_FILE_MAGIC = 0xCAFEBABE
CLASS_FILE_EXTENSION = ".class"
OBJECT_CLASS = "java.lang.Object"


class AccessFlags(IntFlag):
    """Class access and property modifiers (JVMS table 4.1-B and 4.7.6-A)."""

    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    SUPER = 0x0020
    INTERFACE = 0x0200
    ABSTRACT = 0x0400
    SYNTHETIC = 0x1000
    ANNOTATION = 0x2000
    ENUM = 0x4000
    MODULE = 0x8000


# Constant pool tags
_UTF8 = 1
_INTEGER = 3
_FLOAT = 4
_LONG = 5
_DOUBLE = 6
_CLASS = 7
_STRING = 8
_FIELDREF = 9
_METHODREF = 10
_INTERFACE_METHODREF = 11
_NAME_AND_TYPE = 12
_METHOD_HANDLE = 15
_METHOD_TYPE = 16
_DYNAMIC = 17
_INVOKE_DYNAMIC = 18
_MODULE = 19
_PACKAGE = 20

_FIXED_SIZES = {
    _INTEGER: 4,
    _FLOAT: 4,
    _STRING: 2,
    _FIELDREF: 4,
    _METHODREF: 4,
    _INTERFACE_METHODREF: 4,
    _NAME_AND_TYPE: 4,
    _METHOD_HANDLE: 3,
    _METHOD_TYPE: 2,
    _DYNAMIC: 4,
    _INVOKE_DYNAMIC: 4,
    _MODULE: 2,
    _PACKAGE: 2,
}


@dataclass(frozen=True)
class _ClassRef:
    name_index: int


@dataclass(frozen=True)
class InnerClassEntry:
    """One row of an ``InnerClasses`` attribute."""

    inner_name: str
    outer_name: str | None
    simple_name: str | None
    access_flags: int


@dataclass(frozen=True)
class ClassFile:
    """Parsed class file header."""

    name: str
    super_name: str | None
    interfaces: tuple[str, ...]
    access_flags: int
    major_version: int
    minor_version: int
    inner_classes: tuple[InnerClassEntry, ...] = ()

    @property
    def own_inner_entry(self) -> InnerClassEntry | None:
        """The ``InnerClasses`` row describing this class itself, if nested."""
        for entry in self.inner_classes:
            if entry.inner_name == self.name:
                return entry
        return None

    @property
    def effective_access_flags(self) -> int:
        """Source-level modifiers.

        Nested classes are compiled with widened flags (a ``protected`` or
        ``private`` member class becomes public or package-private); the
        declared modifiers live in the ``InnerClasses`` attribute.
        """
        entry = self.own_inner_entry
        if entry is not None:
            return entry.access_flags
        return self.access_flags

    @property
    def is_anonymous(self) -> bool:
        entry = self.own_inner_entry
        return entry is not None and entry.simple_name is None

    @property
    def is_module(self) -> bool:
        return bool(self.access_flags & AccessFlags.MODULE)

    @property
    def supertype_names(self) -> tuple[str, ...]:
        if self.super_name is None:
            return self.interfaces
        return (self.super_name, *self.interfaces)


def decode_modified_utf8(raw: bytes) -> str:
    """Decode a CONSTANT_Utf8 payload.

    The class file encoding differs from standard UTF-8 in two ways: NUL is
    written as ``C0 80`` and supplementary characters are written as two
    separately encoded UTF-16 surrogates.
    """
    try:
        text = raw.replace(b"\xc0\x80", b"\x00").decode("utf-8", "surrogatepass")
    except UnicodeDecodeError as exc:
        raise ClassFormatError(f"invalid modified UTF-8 constant: {exc}") from exc
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")


def internal_to_binary(name: str) -> str:
    """``com/foo/Bar`` -> ``com.foo.Bar``."""
    return name.replace("/", ".")


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def _unpack(self, fmt: str, size: int) -> int:
        try:
            (value,) = struct.unpack_from(fmt, self.data, self.offset)
        except struct.error as exc:
            raise ClassFormatError(f"truncated class file at offset {self.offset}") from exc
        self.offset += size
        return value

    def u1(self) -> int:
        return self._unpack(">B", 1)

    def u2(self) -> int:
        return self._unpack(">H", 2)

    def u4(self) -> int:
        return self._unpack(">I", 4)

    def read(self, length: int) -> bytes:
        end = self.offset + length
        if end > len(self.data):
            raise ClassFormatError(f"truncated class file at offset {self.offset}")
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def skip(self, length: int) -> None:
        self.read(length)


class _ConstantPool:
    def __init__(self, entries: list[object]) -> None:
        self.entries = entries

    def _entry(self, index: int) -> object:
        if index <= 0 or index >= len(self.entries) or self.entries[index] is None:
            raise ClassFormatError(f"invalid constant pool index {index}")
        return self.entries[index]

    def utf8(self, index: int) -> str:
        entry = self._entry(index)
        if not isinstance(entry, str):
            raise ClassFormatError(f"constant {index} is not a Utf8 entry")
        return entry

    def class_name(self, index: int) -> str:
        entry = self._entry(index)
        if not isinstance(entry, _ClassRef):
            raise ClassFormatError(f"constant {index} is not a Class entry")
        return internal_to_binary(self.utf8(entry.name_index))


def _read_constant_pool(reader: _Reader) -> _ConstantPool:
    count = reader.u2()
    entries: list[object] = [None] * count
    index = 1
    while index < count:
        tag = reader.u1()
        if tag == _UTF8:
            entries[index] = decode_modified_utf8(reader.read(reader.u2()))
        elif tag == _CLASS:
            entries[index] = _ClassRef(reader.u2())
        elif tag in (_LONG, _DOUBLE):
            # Eight-byte constants take two slots.
            reader.skip(8)
            index += 1
        elif tag in _FIXED_SIZES:
            reader.skip(_FIXED_SIZES[tag])
        else:
            raise ClassFormatError(f"unknown constant pool tag {tag} at index {index}")
        index += 1
    return _ConstantPool(entries)


def _skip_attributes(reader: _Reader) -> None:
    for _ in range(reader.u2()):
        reader.u2()
        reader.skip(reader.u4())


def _skip_members(reader: _Reader) -> None:
    for _ in range(reader.u2()):
        reader.skip(6)  # access_flags, name_index, descriptor_index
        _skip_attributes(reader)


def _read_inner_classes(reader: _Reader, pool: _ConstantPool) -> list[InnerClassEntry]:
    entries = []
    for _ in range(reader.u2()):
        inner_index = reader.u2()
        outer_index = reader.u2()
        name_index = reader.u2()
        flags = reader.u2()
        entries.append(
            InnerClassEntry(
                inner_name=pool.class_name(inner_index),
                outer_name=pool.class_name(outer_index) if outer_index else None,
                simple_name=pool.utf8(name_index) if name_index else None,
                access_flags=flags,
            )
        )
    return entries


def parse_class_file(data: bytes) -> ClassFile:
    """Parse the header, constant pool and class attributes of a class file.

    Args:
        data: Raw bytes of a ``.class`` file.

    Returns:
        The parsed ClassFile.

    Raises:
        ClassFormatError: If the bytes are not a well-formed class file.
    """
    reader = _Reader(data)
    if reader.u4() != CLASS_FILE_MAGIC:
        raise ClassFormatError("bad magic number")
    minor_version = reader.u2()
    major_version = reader.u2()
    pool = _read_constant_pool(reader)

    access_flags = reader.u2()
    name = pool.class_name(reader.u2())
    super_index = reader.u2()
    super_name = pool.class_name(super_index) if super_index else None
    interfaces = tuple(pool.class_name(reader.u2()) for _ in range(reader.u2()))

    _skip_members(reader)  # fields
    _skip_members(reader)  # methods

    inner_classes: list[InnerClassEntry] = []
    for _ in range(reader.u2()):
        attribute_name = pool.utf8(reader.u2())
        length = reader.u4()
        if attribute_name == "InnerClasses":
            start = reader.offset
            inner_classes.extend(_read_inner_classes(reader, pool))
            if reader.offset - start != length:
                raise ClassFormatError("InnerClasses attribute length mismatch")
        else:
            reader.skip(length)

    return ClassFile(
        name=name,
        super_name=super_name,
        interfaces=interfaces,
        access_flags=access_flags,
        major_version=major_version,
        minor_version=minor_version,
        inner_classes=tuple(inner_classes),
    )
