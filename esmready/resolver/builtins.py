"""Platform (Node.js core) module names.

These resolve to an external sentinel and are never walked.
"""

from typing import FrozenSet, Iterable

NODE_BUILTINS: FrozenSet[str] = frozenset(
    {
        "assert",
        "assert/strict",
        "async_hooks",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "dns/promises",
        "domain",
        "events",
        "fs",
        "fs/promises",
        "http",
        "http2",
        "https",
        "inspector",
        "inspector/promises",
        "module",
        "net",
        "os",
        "path",
        "path/posix",
        "path/win32",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "readline/promises",
        "repl",
        "stream",
        "stream/consumers",
        "stream/promises",
        "stream/web",
        "string_decoder",
        "sys",
        "timers",
        "timers/promises",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "util/types",
        "v8",
        "vm",
        "wasi",
        "worker_threads",
        "zlib",
    }
)

# Only reachable through the ``node:`` scheme.
SCHEME_ONLY_BUILTINS: FrozenSet[str] = frozenset(
    {"sea", "sqlite", "test", "test/reporters"}
)


def is_builtin(specifier: str, extra: Iterable[str] = ()) -> bool:
    """Return True when ``specifier`` names a platform module.

    A trailing slash (``string_decoder/``) opts out of the built-in and
    asks for the userland package of the same name.
    """
    if specifier.endswith("/"):
        return False
    if specifier.startswith("node:"):
        name = specifier[len("node:"):]
        return name in NODE_BUILTINS or name in SCHEME_ONLY_BUILTINS
    return specifier in NODE_BUILTINS or specifier in extra
