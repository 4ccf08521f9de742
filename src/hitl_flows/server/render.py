"""HTML rendering for flows and steps.

Pages are small server-rendered documents driven by htmx: pending input steps
post JSON (via the json-enc extension) back to their step URL, and unfinished
flows poll themselves until the next step appears.
"""

from __future__ import annotations

from html import escape

from hitl_flows.flows.models import Flow, Step, StepKind
from hitl_flows.flows.state_machine import Status
from hitl_flows.server.models import Indicator

_INDICATOR_MARKS: dict[Indicator, str] = {
    "done": "✅",
    "aborted": "❌",
    "pending": "",
}


def render_page(body: str, *, title: str) -> str:
    return f"""<!doctype html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{escape(title)}</title>
    <script src="https://unpkg.com/htmx.org@1.9.12/dist/htmx.min.js"></script>
    <script src="https://unpkg.com/htmx.org@1.9.12/dist/ext/json-enc.js"></script>
    <style>
      main {{ display: flex; flex-direction: column; gap: 1.5rem; align-items: center; padding: 2.5rem; }}
      .box {{ display: flex; flex-direction: column; gap: 2rem; background: #f4f4f4;
              padding: 3rem 5rem 3.5rem; border: 1px solid #999; }}
      form {{ display: flex; flex-direction: column; gap: 1.5rem; max-width: fit-content; }}
    </style>
  </head>
  <body>
    <main>
{body}
    </main>
  </body>
</html>
"""


def render_step(flow_id: str, step: Step) -> str:
    label = escape(step.label)
    if step.kind is StepKind.OUTPUT:
        return f"<p>{label}</p>"

    if step.status is Status.DONE:
        return f"<p>{label}: {escape(step.value or '')}</p>"
    if step.status is Status.ABORTED:
        return f"<p>{label}: <em>aborted ({escape(step.abort_reason or '')})</em></p>"
    return f"""<form hx-post="/flow/{escape(flow_id)}/{escape(step.id)}" hx-trigger="submit"
      hx-target="body" hx-ext="json-enc">
  <label for="value-{escape(step.id)}">{label}</label>
  <input id="value-{escape(step.id)}" name="value" type="text">
  <button type="submit">Submit</button>
</form>"""


def render_flow_body(flow: Flow, steps_html: list[str], *, back_url: str) -> str:
    parts = [f"<h1>{escape(flow.title)}</h1>", *steps_html]
    if flow.status is Status.DONE:
        parts.append("<p>Flow completed</p>")
        parts.append(f'<a href="{escape(back_url)}">Go Back</a>')
    elif flow.status is Status.ABORTED:
        parts.append("<p>Flow aborted</p>")
        parts.append(f'<a href="{escape(back_url)}">Go Back</a>')
    elif flow.next_pending_step() is None:
        # Nothing to answer yet: poll until workflow code asks for more.
        parts.append(
            f'<p hx-get="/flow/{escape(flow.id)}" hx-trigger="every 2s" '
            'hx-target="body" hx-select="main" hx-swap="innerHTML">Loading...</p>'
        )
    else:
        parts.append("<p>Loading...</p>")
    return "\n".join(parts)


def render_landing_body(entries: list[tuple[Flow, Indicator]]) -> str:
    items = "\n".join(
        f'<li><a href="/flow/{escape(flow.id)}">{escape(flow.title)}</a> '
        f"<span>{_INDICATOR_MARKS[indicator]}</span></li>"
        for flow, indicator in entries
    )
    return f"""<div class="box">
  <h1>Choose a flow</h1>
  <ul>
{items}
  </ul>
</div>"""


def render_redirect_body(message: str, url: str) -> str:
    return f"""<div class="box" hx-get="{escape(url)}" hx-trigger="load delay:2s"
  hx-target="body" hx-push-url="true">
  <meta http-equiv="refresh" content="2; url={escape(url)}">
  <h1>{escape(message)}</h1>
  <p>Redirecting...</p>
</div>"""
