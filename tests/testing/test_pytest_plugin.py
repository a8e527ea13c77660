"""Tests for the pytest plugin's e2e gating."""

import pytest

PLUGIN = "empower_e2e.testing.pytest_plugin"


@pytest.fixture
def isolated(pytester: pytest.Pytester, monkeypatch: pytest.MonkeyPatch) -> pytest.Pytester:
    # Load the plugin explicitly, not through the installed entry point.
    monkeypatch.setenv("PYTEST_DISABLE_PLUGIN_AUTOLOAD", "1")
    pytester.makepyfile(
        """
        import pytest

        @pytest.mark.e2e
        def test_on_chain():
            pass

        def test_offline():
            pass

        def test_needs_context(e2e_context):
            pass
        """
    )
    return pytester


def test_e2e_skipped_by_default(isolated: pytest.Pytester) -> None:
    result = isolated.runpytest("-p", PLUGIN, "-rs")
    result.assert_outcomes(passed=1, skipped=2)
    result.stdout.fnmatch_lines(["*needs --run-e2e*"])


def test_marker_registered(isolated: pytest.Pytester) -> None:
    result = isolated.runpytest("-p", PLUGIN, "--markers")
    result.stdout.fnmatch_lines(["@pytest.mark.e2e: needs a running validator network*"])


def test_options_in_help(isolated: pytest.Pytester) -> None:
    result = isolated.runpytest("-p", PLUGIN, "--help")
    result.stdout.fnmatch_lines(["*--run-e2e*", "*--e2e-config*"])
