"""HTML pages served to participants' phones after a QR scan.

Pages are small f-string templates; every interpolated value goes through
html.escape.
"""

from __future__ import annotations

from html import escape

from fastapi.responses import HTMLResponse

from hunt_tracker.services.progress_service import ParticipantState


def page(title: str, body: str, *, status_code: int = 200) -> HTMLResponse:
    html = f"""<!doctype html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{escape(title)}</title>
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>
      body {{ font-family: system-ui, Arial; max-width: 560px; margin: 0 auto; padding: 22px; }}
      input, button {{ font-size: 16px; padding: 10px; }}
      .card {{ border: 1px solid #ddd; border-radius: 12px; padding: 16px; margin: 16px 0; }}
      .muted {{ color: #666; }}
      .danger {{ color: #b00020; }}
      .ok {{ color: #2e7d32; }}
    </style>
  </head>
  <body>
    {body}
  </body>
</html>
"""
    return HTMLResponse(html, status_code=status_code)


def registration_form(code: str) -> HTMLResponse:
    """Ask for a registration number, carrying the scanned code along."""
    return page(
        "Enter Your Registration Number",
        f"""
    <h1>Enter Your Registration Number</h1>
    <form action="/register" method="post" class="card">
      <input type="text" name="registrationNumber" placeholder="e.g., A12345"
             pattern="[A-Z0-9]+" required />
      <input type="hidden" name="code" value="{escape(code, quote=True)}" />
      <button type="submit">Submit</button>
    </form>
    <p><strong>Important:</strong> Please enable cookies to participate in the scavenger hunt.</p>
    """,
    )


def progress_page(state: ParticipantState, *, heading: str = "Component Collected!") -> HTMLResponse:
    if state.is_complete:
        footer = '<p class="ok"><strong>Congratulations! You’ve completed the hunt!</strong></p>'
    else:
        footer = "<p>Scan the next QR code!</p>"

    return page(
        heading,
        f"""
    <h1>{escape(heading)}</h1>
    <p>Progress: {state.progress_label}</p>
    {footer}
    """,
    )


def not_registered_page() -> HTMLResponse:
    return page(
        "No Progress Yet",
        """
    <h1>No Progress Yet</h1>
    <p class="muted">Scan any hunt QR code to register and start collecting components.</p>
    """,
    )


def error_page(title: str, message: str | None, *, status_code: int) -> HTMLResponse:
    detail = f"<p>{escape(message)}</p>" if message else ""
    return page(
        title,
        f"""
    <h1 class="danger">{escape(title)}</h1>
    {detail}
    """,
        status_code=status_code,
    )
