"""
changeish - AI-written commit messages, summaries, changelogs, release notes
and announcements from git history.

Usage:
    python main.py                                    # commit message for working-tree changes
    python main.py message --cached                   # commit message for staged changes
    python main.py summary HEAD~5..HEAD               # per-commit summaries
    python main.py summary HEAD~5..HEAD src/          # summaries limited to src/
    python main.py changelog --cached                 # update CHANGELOG.md
    python main.py changelog v1.0.0..HEAD --update-mode prepend
    python main.py release-notes HEAD~10..HEAD --section-name v2.0.0
    python main.py announce HEAD~10..HEAD
    python main.py make-template changelog my_prompt.md
"""

import argparse
import sys

from typing import List, Optional

from dotenv import load_dotenv

# Load .env before anything else
load_dotenv()

__version__ = "0.2.0"

COMMANDS = ("message", "summary", "changelog", "release-notes", "announce")
SUBCOMMANDS = COMMANDS + ("make-template",)


def _common_options() -> argparse.ArgumentParser:
    """Options shared by every history-reading subcommand."""
    common = argparse.ArgumentParser(add_help=False)

    target = common.add_argument_group("target")
    target.add_argument(
        "target",
        nargs="?",
        default=None,
        help="A commit (e.g. HEAD) or commit range (e.g. v1.0.0..HEAD). "
             "Defaults to the working tree.",
    )
    target.add_argument(
        "pattern",
        nargs="?",
        default=None,
        help="A git path pattern limiting the diff (e.g. src/). "
             "Same as --include-pattern.",
    )
    target.add_argument(
        "--current",
        dest="target_flag",
        action="store_const",
        const="--current",
        help="Use uncommitted working-tree changes (default).",
    )
    target.add_argument(
        "--cached", "--staged",
        dest="target_flag",
        action="store_const",
        const="--cached",
        help="Use staged changes.",
    )

    general = common.add_argument_group("general")
    general.add_argument("--verbose", action="store_true", help="Print debug output to stderr.")
    general.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output.")
    general.add_argument("--dry-run", action="store_true", help="Show the result without writing files.")
    general.add_argument("--config-file", default=None, help="Env-style config file to load (overrides .env).")
    general.add_argument("--template-dir", default=None, help="Directory with <name>.md prompt templates.")
    general.add_argument("--output-file", default=None, help="Write the result to this file.")
    general.add_argument("--save-prompt", action="store_true", help="Keep the final prompt in prompt.md.")
    general.add_argument("--save-history", action="store_true", help="Keep the git history in history.md.")

    history = common.add_argument_group("history")
    history.add_argument("--include-pattern", default=None, help="Only diff paths matching this glob.")
    history.add_argument("--exclude-pattern", default=None, help="Leave paths matching this glob out of the diff.")
    history.add_argument("--todo-pattern", default=None, help="Glob of TODO files diffed separately (default: *todo*).")
    history.add_argument("--version-file", default=None, help="File that declares the project version.")

    model = common.add_argument_group("model")
    model.add_argument("--model", default=None, help="Local Ollama model (default from CHANGEISH_MODEL or qwen2.5-coder).")
    model.add_argument(
        "--model-provider",
        default=None,
        help="auto, local, remote, cerebras or none (default from CHANGEISH_MODEL_PROVIDER or auto).",
    )
    model.add_argument("--api-model", default=None, help="Remote API model.")
    model.add_argument("--api-url", default=None, help="Remote chat completions URL.")

    document = common.add_argument_group("document")
    document.add_argument(
        "--update-mode",
        default="auto",
        help="How the section is merged: auto, update, prepend, append or skip (default: auto).",
    )
    document.add_argument(
        "--section-name",
        default="auto",
        help="Target section heading (default: detected version or 'Current Changes').",
    )
    return common


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="changeish",
        description="📝 changeish: AI-generated changelogs and release notes from git history.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  changeish message --cached
  changeish summary HEAD~5..HEAD --include-pattern 'src/*'
  changeish changelog --cached docs/
  changeish changelog v1.0.0..HEAD --update-mode prepend
  changeish release-notes --section-name v2.0.0
        """,
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")

    common = _common_options()
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("message", parents=[common], help="Generate a commit message (default).")
    subparsers.add_parser("summary", parents=[common], help="Summarize each commit in the target.")
    subparsers.add_parser("changelog", parents=[common], help="Generate or update the changelog.")
    subparsers.add_parser("release-notes", parents=[common], help="Generate or update release notes.")
    subparsers.add_parser("announce", parents=[common], help="Draft a release announcement.")

    template_parser = subparsers.add_parser(
        "make-template",
        help="Write a built-in prompt template to a file.",
    )
    template_parser.add_argument("name", choices=COMMANDS, help="Template to write.")
    template_parser.add_argument("path", help="Destination file.")

    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or (argv[0] not in SUBCOMMANDS and argv[0] not in ("-h", "--help", "-v", "--version")):
        # No command given, so behave like `message`
        argv.insert(0, "message")
    args = parser.parse_args(argv)
    if getattr(args, "target_flag", None) and args.target and not args.pattern:
        # `--cached src/`: with a flag target the only positional is the pattern
        args.pattern, args.target = args.target, None
    return args


def build_config(args: argparse.Namespace):
    """Translate parsed arguments into an AppConfig."""
    from config.settings import AppConfig, HistoryConfig, LLMConfig, load_config_file

    if args.config_file:
        load_config_file(args.config_file)

    llm_config = LLMConfig(
        provider=args.model_provider,
        model=args.model,
        api_model=args.api_model,
        api_url=args.api_url,
    )
    history_config = HistoryConfig(
        include_pattern=args.include_pattern or args.pattern,
        exclude_pattern=args.exclude_pattern,
        todo_pattern=args.todo_pattern,
        version_file=args.version_file,
    )
    return AppConfig(
        llm=llm_config,
        history=history_config,
        output_file=args.output_file,
        update_mode=args.update_mode,
        section_name=args.section_name,
        template_dir=args.template_dir,
        save_prompt=args.save_prompt,
        save_history=args.save_history,
        dry_run=args.dry_run,
        verbose=not args.quiet,
        debug=args.verbose,
    )


def run_make_template(name: str, path: str) -> None:
    from core.document import write_document
    from core.prompts import load_template

    write_document(path, load_template(name))
    print(f"📄 Default {name} prompt template written to {path}.")


def emit(text: str, output_file: Optional[str], dry_run: bool, label: str) -> None:
    """Print *text*, or write it to *output_file*."""
    from core.document import write_document

    if not output_file:
        print(text.rstrip("\n"))
        return
    if dry_run:
        print(text.rstrip("\n"))
        print(f"Dry run: would write {label} to {output_file}")
        return
    write_document(output_file, text.rstrip("\n") + "\n")
    print(f"✅ {label.capitalize()} written to {output_file}")


def run_command(args: argparse.Namespace) -> None:
    """Run a history-reading subcommand."""
    # Lazy imports so `--help` and `make-template` stay fast
    from core.editor import UpdatePolicy
    from core.errors import ChangeishError
    from core.generator import ResponseGenerator
    from core.history import HistoryExtractor
    from core.writer import DocumentWriter

    config = build_config(args)
    target = args.target_flag or args.target or "--current"

    if args.command in ("changelog", "release-notes"):
        # Reject a bad mode before touching git or the model
        UpdatePolicy.parse(config.update_mode)

    extractor = HistoryExtractor(config.history, debug=config.debug)
    extractor.ensure_repository()
    if config.history.version_file and extractor.find_version_file() != config.history.version_file:
        raise ChangeishError(f"version file '{config.history.version_file}' does not exist.")

    generator = ResponseGenerator(config.llm, debug=config.debug)
    writer = DocumentWriter(config, extractor, generator)

    if args.command == "message":
        emit(writer.commit_message(target), config.output_file, config.dry_run, "message")
    elif args.command == "summary":
        emit(writer.summarize(target), config.output_file, config.dry_run, "summary")
    else:
        writer.write_document(args.command, target)


def main(argv: Optional[List[str]] = None) -> int:
    from core.errors import ChangeishError

    args = parse_args(argv)
    try:
        if args.command == "make-template":
            run_make_template(args.name, args.path)
        else:
            run_command(args)
    except (ChangeishError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
