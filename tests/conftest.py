"""Shared fixtures: synthetic class files so the tests need no JDK."""

import io
import struct
import zipfile
from pathlib import Path

import pytest


ACC_PUBLIC = 0x0001
ACC_PRIVATE = 0x0002
ACC_STATIC = 0x0008
ACC_FINAL = 0x0010
ACC_SUPER = 0x0020
ACC_INTERFACE = 0x0200
ACC_ABSTRACT = 0x0400
ACC_ENUM = 0x4000
ACC_MODULE = 0x8000


class _Pool:
    """Minimal constant pool writer."""

    def __init__(self):
        self.data = bytearray()
        self.count = 1
        self._utf8 = {}
        self._classes = {}

    def utf8(self, value: str) -> int:
        if value not in self._utf8:
            raw = value.encode("utf-8")
            self.data += struct.pack(">BH", 1, len(raw)) + raw
            self._utf8[value] = self.count
            self.count += 1
        return self._utf8[value]

    def class_ref(self, binary_name: str) -> int:
        if binary_name not in self._classes:
            name_index = self.utf8(binary_name.replace(".", "/"))
            self.data += struct.pack(">BH", 7, name_index)
            self._classes[binary_name] = self.count
            self.count += 1
        return self._classes[binary_name]

    def long(self, value: int) -> int:
        index = self.count
        self.data += struct.pack(">Bq", 5, value)
        self.count += 2
        return index


def build_class(
    name: str,
    super_name: str | None = "java.lang.Object",
    interfaces=(),
    access: int = ACC_PUBLIC | ACC_SUPER,
    inner_classes=(),
    major_version: int = 52,
) -> bytes:
    """Assemble a class file.

    ``inner_classes`` rows are ``(inner, outer, simple_name, flags)`` with
    ``outer``/``simple_name`` set to None where javac writes index 0. Every
    class gets a long constant, a field and a method so readers must skip
    over real member tables.
    """
    pool = _Pool()
    this_index = pool.class_ref(name)
    super_index = pool.class_ref(super_name) if super_name else 0
    interface_indexes = [pool.class_ref(interface) for interface in interfaces]

    long_index = pool.long(42)
    field_name = pool.utf8("value")
    field_descriptor = pool.utf8("J")
    constant_value = pool.utf8("ConstantValue")
    init_name = pool.utf8("<init>")
    init_descriptor = pool.utf8("()V")
    code = pool.utf8("Code")

    inner_rows = b""
    for inner, outer, simple_name, flags in inner_classes:
        inner_rows += struct.pack(
            ">HHHH",
            pool.class_ref(inner),
            pool.class_ref(outer) if outer else 0,
            pool.utf8(simple_name) if simple_name else 0,
            flags,
        )
    inner_attribute = pool.utf8("InnerClasses") if inner_classes else 0
    source_file = pool.utf8("SourceFile")
    source_name = pool.utf8("Generated.java")

    out = bytearray()
    out += struct.pack(">IHHH", 0xCAFEBABE, 0, major_version, pool.count)
    out += pool.data
    out += struct.pack(">HHH", access, this_index, super_index)
    out += struct.pack(">H", len(interface_indexes))
    for index in interface_indexes:
        out += struct.pack(">H", index)

    # fields
    out += struct.pack(">H", 1)
    out += struct.pack(">HHHH", 0x0019, field_name, field_descriptor, 1)
    out += struct.pack(">HIH", constant_value, 2, long_index)

    # methods
    body = bytes([0x2A, 0xB1]) + bytes(10)
    out += struct.pack(">H", 1)
    out += struct.pack(">HHHH", ACC_PUBLIC, init_name, init_descriptor, 1)
    out += struct.pack(">HI", code, len(body)) + body

    # attributes
    attributes = [struct.pack(">HIH", source_file, 2, source_name)]
    if inner_classes:
        payload = struct.pack(">H", len(inner_classes)) + inner_rows
        attributes.append(struct.pack(">HI", inner_attribute, len(payload)) + payload)
    out += struct.pack(">H", len(attributes))
    for attribute in attributes:
        out += attribute
    return bytes(out)


def class_path(root: Path, name: str) -> Path:
    return root.joinpath(*name.split(".")).with_name(name.split(".")[-1] + ".class")


def write_class(root: Path, name: str, **kwargs) -> Path:
    """Write a synthetic class file for ``name`` beneath ``root``."""
    path = class_path(root, name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(build_class(name, **kwargs))
    return path


def write_jar(path: Path, classes: dict) -> Path:
    """Write a jar holding ``{binary_name: build_class kwargs}``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, kwargs in classes.items():
            archive.writestr(name.replace(".", "/") + ".class", build_class(name, **kwargs))
    return path


def write_jmod(path: Path, classes: dict) -> Path:
    """Write a JDK module archive: a 4-byte header, then a zip with classes/ entries."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, kwargs in classes.items():
            archive.writestr("classes/" + name.replace(".", "/") + ".class", build_class(name, **kwargs))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"JM\x01\x00" + buffer.getvalue())
    return path


JDK_INTERFACE = ACC_PUBLIC | ACC_INTERFACE | ACC_ABSTRACT

JDK_BASE_CLASSES = {
    "java.lang.Object": {"super_name": None},
    "java.lang.Runnable": {"access": JDK_INTERFACE},
    "java.lang.Thread": {"interfaces": ["java.lang.Runnable"]},
    "java.lang.AutoCloseable": {"access": JDK_INTERFACE},
    "java.io.Closeable": {"access": JDK_INTERFACE, "interfaces": ["java.lang.AutoCloseable"]},
}


@pytest.fixture(autouse=True)
def no_host_jdk(monkeypatch):
    """Keep the JDK installed on the test machine out of the runs."""
    monkeypatch.delenv("JAVA_HOME", raising=False)
    monkeypatch.setattr("serviceloader.jdk.shutil.which", lambda name: None)


@pytest.fixture
def fake_jdk(tmp_path):
    """A JDK home with a small java.base module and a java.sql module."""
    home = tmp_path / "jdk"
    write_jmod(home / "jmods" / "java.base.jmod", JDK_BASE_CLASSES)
    write_jmod(home / "jmods" / "java.sql.jmod", {"java.sql.Driver": {"access": JDK_INTERFACE}})
    return home


@pytest.fixture
def classes_dir(tmp_path):
    """An empty compiled output directory."""
    directory = tmp_path / "target" / "classes"
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def sample_classes(classes_dir):
    """A compiled output tree with a few related types.

    com.foo.AbstractFoo is abstract with two concrete subclasses, com.baz.Baz
    is a concrete class extended by com.baz.BazExt.
    """
    write_class(classes_dir, "com.bar.Bar")
    write_class(classes_dir, "com.foo.AbstractFoo", access=ACC_PUBLIC | ACC_SUPER | ACC_ABSTRACT)
    write_class(classes_dir, "com.foo.FooImpl", super_name="com.foo.AbstractFoo")
    write_class(classes_dir, "com.foo.FooImpl2", super_name="com.foo.AbstractFoo")
    write_class(classes_dir, "com.foo.bar.Hello", interfaces=["java.lang.Runnable"])
    write_class(classes_dir, "com.baz.Baz")
    write_class(classes_dir, "com.baz.BazExt", super_name="com.baz.Baz")
    return classes_dir
