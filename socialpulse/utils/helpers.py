def make_log_tag(file, resource, method, *args, **kwargs):
    """
    Build the bracketed prefix every log line in this service starts with.

    make_log_tag("sync_dispatcher.py", "MetricsSyncDispatcher", "sync_one",
                 account_id="abc") -> "[sync_dispatcher.py][MetricsSyncDispatcher][sync_one][account_id:abc]"
    """
    log_tag = f"[{file}][{resource}][{method}]"

    for value in args:
        log_tag += f"[{value}]"

    for key, value in kwargs.items():
        log_tag += f"[{key}:{value}]"

    return log_tag


def mask_secret(value, visible: int = 4) -> str:
    """Render a token for logs without leaking it."""
    if not value:
        return "<empty>"
    value = str(value)
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}...({len(value)})"
