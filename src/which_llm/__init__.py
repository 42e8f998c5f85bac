from which_llm._version import VERSION, __version__


def refresh_all(*args, **kwargs):
    """Lazy wrapper for :func:`which_llm.pipeline.refresh_all`."""
    from which_llm.pipeline import refresh_all as _refresh_all

    return _refresh_all(*args, **kwargs)


__all__ = ["VERSION", "__version__", "refresh_all"]
