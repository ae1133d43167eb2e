"""HTML templates for compiled preview documents.

Everything here is string assembly; the decisions about what goes into a
document are made in ``preview.py``.
"""

from __future__ import annotations

import html
import json

# Tag on every message the shim posts to the hosting page
TELEMETRY_SOURCE = "nodecanvas-preview"

MOUNT_POINT_ID = "root"

PLACEHOLDER_HINT = "Connect a CODE node (index.html or App.js) to the DOM port."


def placeholder_document(hint: str = PLACEHOLDER_HINT) -> str:
    """Document shown when a preview has nothing wired into its DOM input."""
    return f"""<!DOCTYPE html>
<html>
  <body style="background-color: #0f0f11; color: #71717a; font-family: sans-serif; height: 100vh; display: flex; align-items: center; justify-content: center; margin: 0;">
    <div style="text-align: center;">
      <p>{html.escape(hint)}</p>
    </div>
  </body>
</html>
"""


def stopped_document() -> str:
    """Document shown for a preview that is not running."""
    return (
        '<body style="background-color: #000; color: #555; height: 100vh; display: flex; '
        'align-items: center; justify-content: center; margin: 0; font-family: sans-serif;">'
        "STOPPED</body>"
    )


def _script_json(value: object) -> str:
    """JSON that is safe to embed inside a <script> element."""
    return json.dumps(value).replace("</", "<\\/")


def telemetry_shim(node_id: str) -> str:
    """Script that forwards console output and uncaught errors to the host.

    Each message has the shape
    ``{source, nodeId, channel, text, timestamp}``. Values are stringified
    without throwing: null and undefined become words, errors their stack,
    objects JSON, and anything unserializable a placeholder.
    """
    return f"""<script>
(function() {{
  var NODE_ID = {_script_json(node_id)};
  var SOURCE = {_script_json(TELEMETRY_SOURCE)};

  function stringify(arg) {{
    if (arg === undefined) return 'undefined';
    if (arg === null) return 'null';
    if (arg instanceof Error) return arg.stack || (arg.name + ': ' + arg.message);
    if (typeof arg === 'object') {{
      try {{ return JSON.stringify(arg, null, 2); }} catch (e) {{ return '[Unserializable ' + Object.prototype.toString.call(arg) + ']'; }}
    }}
    try {{ return String(arg); }} catch (e) {{ return '[Unprintable]'; }}
  }}

  function send(channel, args) {{
    try {{
      var parts = [];
      for (var i = 0; i < args.length; i++) parts.push(stringify(args[i]));
      window.parent.postMessage({{
        source: SOURCE,
        nodeId: NODE_ID,
        channel: channel,
        text: parts.join(' '),
        timestamp: Date.now()
      }}, '*');
    }} catch (e) {{}}
  }}

  ['log', 'warn', 'error', 'info'].forEach(function(channel) {{
    var original = console[channel];
    console[channel] = function() {{
      var args = Array.prototype.slice.call(arguments);
      if (original) original.apply(console, args);
      send(channel, args);
    }};
  }});

  window.addEventListener('error', function(event) {{
    var where = event.lineno ? '(Line ' + event.lineno + ')' : '';
    send('error', where ? [event.error || event.message, where] : [event.error || event.message]);
  }});

  window.addEventListener('unhandledrejection', function(event) {{
    send('error', ['Unhandled promise rejection:', event.reason]);
  }});
}})();
</script>"""


def error_stub_module(message: str) -> str:
    """One-line module that reports a failed transform on the error channel."""
    return f"console.error({_script_json(message)});\n"


def entry_module(root_specifier: str) -> str:
    """Entry script for a script root: import it, mount it if renderable."""
    spec = _script_json(root_specifier)
    mount = _script_json(MOUNT_POINT_ID)
    return f"""<script type="module">
import * as entry from {spec};
const Root = entry.default;
if (typeof Root === 'function') {{
  const React = await import('react');
  const {{ createRoot }} = await import('react-dom/client');
  createRoot(document.getElementById({mount})).render(React.createElement(Root));
}}
</script>"""


def assemble_document(
    *,
    node_id: str,
    css: str,
    import_map: dict[str, dict[str, str]],
    body: str,
    entry: str = "",
    stylesheets: list[str] | None = None,
) -> str:
    links = "".join(
        f'\n    <link rel="stylesheet" href="{html.escape(href, quote=True)}">'
        if href.endswith(".css")
        else f'\n    <script src="{html.escape(href, quote=True)}"></script>'
        for href in stylesheets or []
    )
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">{links}
    <style>
{css}
    </style>
    {telemetry_shim(node_id)}
    <script type="importmap">
{_script_json(import_map)}
    </script>
  </head>
  <body>
{body}
{entry}
  </body>
</html>
"""
