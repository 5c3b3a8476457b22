"""finsight: bank statement import, categorization and spending analytics."""

__version__ = "0.1.0"

__all__ = ["main", "__version__"]


def __getattr__(name):
    # The CLI pulls in every service; load it only when asked for
    if name == "main":
        from finsight.cli.main import main

        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
