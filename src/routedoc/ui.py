"""HTML entry points for the interactive documentation renderers.

Renderer assets are loaded from a CDN; only the page is served here.
"""

import html
import json

REDOC_JS = "https://cdn.jsdelivr.net/npm/redoc@2/bundles/redoc.standalone.js"
SWAGGER_UI_CSS = "https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui.css"
SWAGGER_UI_BUNDLE_JS = "https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui-bundle.js"
SWAGGER_UI_PRESET_JS = "https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui-standalone-preset.js"

_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <title>{title}</title>
    <meta charset="utf-8"/>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
      html {{
        box-sizing: border-box;
        overflow-y: scroll;
      }}
      *, *:before, *:after {{
        box-sizing: inherit;
      }}
      body {{
        margin: 0;
        padding: 0;
        background: #fafafa;
      }}
    </style>
    {head}
  </head>
  <body>
    {body}
  </body>
</html>
"""


def render_page(title: str, head: str, body: str) -> str:
    return _PAGE.format(title=html.escape(title), head=head, body=body)


def render_redoc(document_url: str, **config) -> str:
    options = json.dumps(config)
    return render_page(
        "ReDoc",
        '<link href="https://fonts.googleapis.com/css?family=Montserrat:300,400,700|Roboto:300,400,700" rel="stylesheet">',
        f"""<div id="redoc-container"></div>
    <script src="{REDOC_JS}"></script>
    <script>
      Redoc.init({json.dumps(document_url)}, {options}, document.getElementById("redoc-container"))
    </script>""",
    )


def render_swagger_ui(document_url: str, **config) -> str:
    options = json.dumps({"url": document_url, "dom_id": "#swagger-ui", **config})
    return render_page(
        "Swagger UI",
        f'<link rel="stylesheet" type="text/css" href="{SWAGGER_UI_CSS}">',
        f"""<div id="swagger-ui"></div>
    <script src="{SWAGGER_UI_BUNDLE_JS}"></script>
    <script src="{SWAGGER_UI_PRESET_JS}"></script>
    <script>
      window.onload = function () {{
        window.ui = SwaggerUIBundle({options})
      }}
    </script>""",
    )
