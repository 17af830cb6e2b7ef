import logging
from dataclasses import dataclass
from typing import Optional
from flask import Flask, render_template, request
from .app import App
from .args import parse_main_args
from .engine import ActionStatus

logger = logging.getLogger(__name__)

@dataclass
class WebAppState:
    last_cmd: Optional[str] = None
    error: Optional[str] = None

def main() -> None:

    # Parse arguments
    args = parse_main_args()
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    # Create application
    app = App(args)
    app.start_initial()

    # Create web application
    web_app = create_web_app(app, WebAppState())
    web_app.run(debug=app.dev_mode, port=args.port)

def create_web_app(app: App, state: WebAppState) -> Flask:

    web_app = Flask(__name__)

    @web_app.route("/", methods=["GET", "POST"])
    def index():
        # Perform command, then display the current node
        state.error = None
        if request.method == "POST":
            state.last_cmd = request.form.get("command", "")
            logger.debug("Http POST > %s", state.last_cmd)

            engine_response = app.handle_raw_command(state.last_cmd)
            if engine_response.status != ActionStatus.OK:
                state.error = engine_response.message
        else:
            logger.debug("Http GET")

        view = app.current_view()
        notes = app.take_notes()

        return render_template(
            "index.html",
            view=view,
            notes=notes,
            error=state.error,
            last_cmd=state.last_cmd,
        )

    return web_app

if __name__ == "__main__":
    main()
