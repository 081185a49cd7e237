"""Tests for serviceloader.jdk module."""

from pathlib import Path

from conftest import build_class, write_jar
from serviceloader.classpath import ArchiveRoot
from serviceloader.jdk import JMOD_CLASSES_PREFIX, find_java_home, platform_classpath, platform_roots


class TestFindJavaHome:
    """Tests for find_java_home."""

    def test_explicit_location_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("JAVA_HOME", str(tmp_path / "env"))

        assert find_java_home(tmp_path / "explicit") == tmp_path / "explicit"

    def test_java_home_variable(self, monkeypatch, tmp_path):
        monkeypatch.setenv("JAVA_HOME", str(tmp_path / "env"))

        assert find_java_home() == tmp_path / "env"

    def test_java_on_path(self, monkeypatch, tmp_path):
        java = tmp_path / "jdk-21" / "bin" / "java"
        java.parent.mkdir(parents=True)
        java.write_text("")
        monkeypatch.setattr("serviceloader.jdk.shutil.which", lambda name: str(java))

        assert find_java_home() == (tmp_path / "jdk-21").resolve()

    def test_nothing_found(self):
        assert find_java_home() is None


class TestPlatformRoots:
    """Tests for platform_roots and platform_classpath."""

    def test_jmods_with_base_module_first(self, fake_jdk):
        roots = platform_roots(fake_jdk)

        assert [root.path.name for root in roots] == ["java.base.jmod", "java.sql.jmod"]
        assert all(root.prefix == JMOD_CLASSES_PREFIX for root in roots)

    def test_rt_jar(self, tmp_path):
        rt = write_jar(tmp_path / "jdk8" / "jre" / "lib" / "rt.jar", {"java.lang.Runnable": {}})

        roots = platform_roots(tmp_path / "jdk8")

        assert len(roots) == 1
        assert isinstance(roots[0], ArchiveRoot)
        assert roots[0].read("java/lang/Runnable.class") == build_class("java.lang.Runnable")
        assert roots[0].path == rt
        roots[0].close()

    def test_runtime_image_without_class_archives(self, tmp_path):
        (tmp_path / "jre" / "lib").mkdir(parents=True)
        (tmp_path / "jre" / "lib" / "modules").write_bytes(b"\xca\xfe\xda\xda")

        assert platform_roots(tmp_path / "jre") == ()
        assert platform_classpath(tmp_path / "jre") is None

    def test_no_jdk(self):
        assert platform_classpath() is None

    def test_classpath_reads_module_classes(self, fake_jdk):
        classpath = platform_classpath(fake_jdk)

        located = classpath.find("java/sql/Driver.class")

        assert located is not None
        assert Path(str(located.root)).name == "java.sql.jmod"
        classpath.close()
