import logging
from importlib.metadata import version
from .app import App
from .args import parse_main_args
from .content import ContentError
from .engine import ActionResult

def main() -> None:

    # Parse arguments
    args = parse_main_args()
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    # Load dialog content and create application
    try:
        app = App(args)
    except ContentError as exc:
        print(f"DIALOG CONTENT FAILED TO LOAD\n{exc}")
        return

    if app.validation_issues:
        issue_lines = "\n".join([f"- {issue}" for issue in app.validation_issues])
        print(f"DIALOG VALIDATION FAILED\nFolder: {args.content}\n{issue_lines}")

    print()
    print("**************************************************")
    print(f"Murmur v{version('murmur')}")
    print(f"  Dialog trees: {', '.join(app.library.tree_ids()) or 'none'}")
    if app.dev_mode:
        print("Developer mode enabled.")
    print("**************************************************")

    # Initial conversation
    print(app.start_initial().message)
    wait_for_auto_end(app)

    # Main loop
    while True:
        try:
            player_cmd_str = input("> ").strip()
        except EOFError:
            break
        if player_cmd_str.lower() in { "quit", "exit", "/quit" }:
            break

        response: ActionResult = app.handle_raw_command(player_cmd_str)
        print(response.message)
        wait_for_auto_end(app)

def wait_for_auto_end(app: App):
    # End nodes close themselves after their display duration
    while app.engine.has_pending_end:
        app.scheduler.wait_for_pending()
        print(app.describe_current())

if __name__ == "__main__":
    main()
