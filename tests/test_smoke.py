"""Public smoke tests for basic module wiring.

Keep these minimal and free of any real-world data.
"""

from __future__ import annotations


def test_imports() -> None:
    import tillrules
    import tillrules.cli.main
    import tillrules.engine
    import tillrules.runtime
    import tillrules.runtime.quote_server

    assert tillrules.__version__
    assert tillrules.cli.main is not None
    assert tillrules.engine is not None
    assert tillrules.runtime is not None
    assert tillrules.runtime.quote_server is not None
