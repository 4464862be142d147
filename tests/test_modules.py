#!/usr/bin/env python3
"""Unit tests for module enumeration."""

import shutil
import tempfile
import unittest
from pathlib import Path

from changed_projects.models import Module, ModuleListError
from changed_projects.modules import (
    discover_modules,
    load_module_manifest,
    parse_settings_includes,
    read_module_version,
    validate_modules,
)
from changed_projects.output import format_task_paths


KOTLIN_SETTINGS = '''
rootProject.name = "gradle-mono"

pluginManagement {
    repositories {
        gradlePluginPortal()
        mavenCentral()
    }
}

// Subprojects
include("library-a")
include("library-b")
'''


class TestModule(unittest.TestCase):
    """Test the Module value type."""

    def test_root_is_normalized(self):
        module = Module("library-a", "./library-a/")
        self.assertEqual(module.root, "library-a")
        self.assertEqual(module.project_path, ":library-a")

    def test_windows_separators(self):
        self.assertEqual(Module("core", "libs\\core").root, "libs/core")

    def test_invalid_modules(self):
        for name, root in [("", "a"), ("a", ""), ("a", "/abs/path"), ("a", "../outside"),
                           ("a", "C:/work/a"), (None, "a"), ("a", 3)]:
            with self.assertRaises(ModuleListError, msg=f"{name!r}, {root!r}"):
                Module(name, root)

    def test_owns(self):
        module = Module("lib", "lib")
        self.assertTrue(module.owns("lib/x.txt"))
        self.assertFalse(module.owns("lib-other/x.txt"))
        self.assertFalse(module.owns("other/lib/x.txt"))


class TestParseSettings(unittest.TestCase):
    """Test parsing of settings scripts."""

    def test_kotlin_dsl(self):
        modules = parse_settings_includes(KOTLIN_SETTINGS)
        self.assertEqual(modules, [Module("library-a", "library-a"), Module("library-b", "library-b")])

    def test_groovy_dsl_with_several_arguments(self):
        content = "include 'app', ':libs:core'\ninclude ':libs:util'\n"

        modules = parse_settings_includes(content)

        self.assertEqual([m.name for m in modules], ["app", "core", "util"])
        self.assertEqual([m.root for m in modules], ["app", "libs/core", "libs/util"])
        self.assertEqual(modules[1].project_path, ":libs:core")

    def test_multiline_include(self):
        content = 'include(\n    "library-a",\n    "library-b",\n)\n'
        self.assertEqual(len(parse_settings_includes(content)), 2)

    def test_comments_and_include_build_are_ignored(self):
        content = '// include("old")\n/* include("older") */\nincludeBuild("build-logic")\ninclude("new")\n'
        self.assertEqual([m.name for m in parse_settings_includes(content)], ["new"])

    def test_custom_project_dir(self):
        content = 'include(":api")\nproject(":api").projectDir = file("services/api")\n'

        modules = parse_settings_includes(content)

        self.assertEqual(modules[0].root, "services/api")
        self.assertEqual(modules[0].project_path, ":api")

    def test_shared_leaf_names_use_project_path(self):
        content = 'include(":a:core", ":b:core")\ninclude(":a:util")\n'

        modules = parse_settings_includes(content)

        self.assertEqual([m.name for m in modules], ["a:core", "b:core", "util"])
        self.assertEqual([m.root for m in modules], ["a/core", "b/core", "a/util"])
        self.assertEqual([m.project_path for m in modules], [":a:core", ":b:core", ":a:util"])

    def test_repeated_include(self):
        content = 'include("library-a")\ninclude(":library-a")\n'
        self.assertEqual(parse_settings_includes(content), [Module("library-a", "library-a")])


class TestDiscoverModules(unittest.TestCase):
    """Test module discovery from the repository root."""

    def setUp(self):
        self.repo_root = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.repo_root, ignore_errors=True)

    def test_reads_kotlin_settings(self):
        (self.repo_root / "settings.gradle.kts").write_text(KOTLIN_SETTINGS)
        self.assertEqual([m.name for m in discover_modules(self.repo_root)], ["library-a", "library-b"])

    def test_reads_groovy_settings(self):
        (self.repo_root / "settings.gradle").write_text("include 'library-a'\n")
        self.assertEqual([m.name for m in discover_modules(self.repo_root)], ["library-a"])

    def test_nested_projects_sharing_a_leaf_name(self):
        (self.repo_root / "settings.gradle.kts").write_text('include(":a:core", ":b:core")\n')

        modules = discover_modules(self.repo_root)

        self.assertEqual([m.name for m in modules], ["a:core", "b:core"])
        self.assertEqual(format_task_paths(modules, "test"), ":a:core:test :b:core:test")

    def test_subproject_directory_is_rejected(self):
        (self.repo_root / "settings.gradle.kts").write_text(KOTLIN_SETTINGS)
        subproject = self.repo_root / "library-a"
        subproject.mkdir()

        with self.assertRaises(ModuleListError) as ctx:
            discover_modules(subproject)
        self.assertIn("root project", str(ctx.exception))

    def test_missing_settings(self):
        with self.assertRaises(ModuleListError):
            discover_modules(self.repo_root)


class TestManifest(unittest.TestCase):
    """Test YAML module manifests."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_list_manifest(self):
        manifest = self.temp_dir / "modules.yaml"
        manifest.write_text("- name: library-a\n  root: library-a\n- name: core\n  root: libs/core\n")

        modules = load_module_manifest(manifest)

        self.assertEqual(modules, [Module("library-a", "library-a"), Module("core", "libs/core")])

    def test_mapping_manifest_with_default_root(self):
        manifest = self.temp_dir / "modules.yaml"
        manifest.write_text("modules:\n  - name: library-b\n")

        self.assertEqual(load_module_manifest(manifest), [Module("library-b", "library-b")])

    def test_missing_manifest(self):
        with self.assertRaises(FileNotFoundError):
            load_module_manifest(self.temp_dir / "missing.yaml")

    def test_malformed_manifest(self):
        manifest = self.temp_dir / "modules.yaml"
        manifest.write_text("modules: library-a\n")
        with self.assertRaises(ModuleListError):
            load_module_manifest(manifest)

        manifest.write_text("- root: no-name\n")
        with self.assertRaises(ModuleListError):
            load_module_manifest(manifest)


class TestValidateModules(unittest.TestCase):
    """Test module list validation."""

    def test_accepts_mixed_entries(self):
        modules = validate_modules([Module("a", "a"), ("b", "b"), {"name": "c", "root": "libs/c"}])
        self.assertEqual([m.name for m in modules], ["a", "b", "c"])

    def test_duplicate_names(self):
        with self.assertRaises(ModuleListError):
            validate_modules([("a", "a"), ("a", "other")])

    def test_not_a_sequence(self):
        for entries in (None, "library-a", {"name": "a"}):
            with self.assertRaises(ModuleListError):
                validate_modules(entries)

    def test_bad_entry(self):
        with self.assertRaises(ModuleListError):
            validate_modules([42])


class TestReadModuleVersion(unittest.TestCase):
    """Test reading declared module versions."""

    def setUp(self):
        self.repo_root = Path(tempfile.mkdtemp())
        self.module = Module("library-a", "library-a")
        (self.repo_root / "library-a").mkdir()

    def tearDown(self):
        shutil.rmtree(self.repo_root, ignore_errors=True)

    def test_gradle_properties(self):
        (self.repo_root / "library-a" / "gradle.properties").write_text("group=com.example\nversion=1.2.3\n")
        self.assertEqual(read_module_version(self.repo_root, self.module), "1.2.3")

    def test_build_script(self):
        (self.repo_root / "library-a" / "build.gradle.kts").write_text('version = "2.0.0-SNAPSHOT"\n')
        self.assertEqual(read_module_version(self.repo_root, self.module), "2.0.0-SNAPSHOT")

    def test_unspecified(self):
        self.assertEqual(read_module_version(self.repo_root, self.module), "unspecified")


if __name__ == '__main__':
    unittest.main()
