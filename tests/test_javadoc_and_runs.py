from modbuild.core.config import ProjectSettings
from modbuild.core.javadoc import is_javadoc_excluded, javadoc_options, mappings_javadoc_url
from modbuild.core.module.models import ModuleExtension
from modbuild.core.module.resolver import resolve_module
from modbuild.core.runs import harness_runs

SETTINGS = ProjectSettings(version="1.0.0", minecraft_version="1.18.2", mappings_build=22, java_version=17)


def test_mappings_javadoc_url():
    assert mappings_javadoc_url(SETTINGS) == (
        "https://maven.quiltmc.org/repository/release/org/quiltmc/quilt-mappings/"
        "1.18.2+build.22/quilt-mappings-1.18.2+build.22-javadoc.jar/"
    )


def test_javadoc_args():
    opts = javadoc_options(SETTINGS)
    args = opts.to_args()
    assert args[:2] == ["-source", "17"]
    assert "-package" in args
    assert args.count("-link") == len(SETTINGS.javadoc_links) + 1
    assert "-Xdoclint:none" in args
    assert opts.fail_on_error is False


def test_javadoc_excludes_internal_packages():
    assert is_javadoc_excluded("src/main/java/org/example/impl/Foo.java")
    assert is_javadoc_excluded("src/main/java/org/example/mixin/FooMixin.java")
    assert not is_javadoc_excluded("src/main/java/org/example/api/Foo.java")


def test_harness_runs():
    d = resolve_module(ModuleExtension(module_name="events", library="core"), "1.0.0", SETTINGS)
    runs = harness_runs(d)
    assert sorted(runs) == ["runTestmodClient", "runTestmodServer"]
    assert runs["runTestmodClient"].environment == "client"
    assert runs["runTestmodServer"].environment == "server"
    assert all(r.source_set == "testmod" for r in runs.values())
