from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Sequence

# 直接スクリプトとして実行された場合でも src パッケージを解決できるようにする
if __package__ in {None, ""}:  # python src/cmd/cli.py 等の実行形態に対応
    project_root = Path(__file__).resolve().parents[2]
    if str(project_root) not in sys.path:
        sys.path.append(str(project_root))

from src.config.defaults import load_service_config
from src.config.logging import setup_logging
from src.lib.document import Transformation
from src.lib.service import (
    ClientOptions,
    CorrectionServiceClient,
    DocumentModel,
    document_from_payload,
    document_to_payload,
)
from src.lib.session import InteractiveEditor

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]


@dataclass(frozen=True)
class CommandResult:
    text: str | None = None
    payload: dict[str, Any] | None = None
    output_path: Path | None = None


CommandHandler = Callable[[argparse.Namespace], CommandResult]
Validator = Callable[[argparse.Namespace], None]


@dataclass(frozen=True)
class SubcommandSpec:
    name: str
    help: str
    configure: Callable[[argparse.ArgumentParser], None]
    handler: CommandHandler
    description: str | None = None
    aliases: tuple[str, ...] = ()
    validators: tuple[Validator, ...] = ()


def _build_shared_parent_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="ログレベル (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="結果 JSON の書き出し先。未指定時はテキストを標準出力へ表示する",
    )
    return parser


def _add_session_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("document", type=Path, help="補正サービスの応答 JSON ファイル")
    parser.add_argument(
        "--ignore-no-replacement",
        action="store_true",
        help="置換を伴わない提案を走査対象から除外する",
    )


def _configure_apply_parser(parser: argparse.ArgumentParser) -> None:
    _add_session_arguments(parser)
    parser.add_argument(
        "--skip-suggestions",
        action="store_true",
        help="提案 (isSuggestion) を適用しない",
    )


def _configure_review_parser(parser: argparse.ArgumentParser) -> None:
    _add_session_arguments(parser)


def _configure_submit_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("text", nargs="?", default=None, help="補正対象のテキスト")
    parser.add_argument("--file", type=Path, default=None, help="補正対象テキストのファイル")
    parser.add_argument("--api-key", default=None, help="利用者の API キー (既定: PT_API_KEY)")
    parser.add_argument("--app-key", default=None, help="アプリキー (既定: PT_APP_KEY)")


def _configure_usage_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--api-key", default=None, help="利用者の API キー (既定: PT_API_KEY)")


def _resolve_api_key(args: argparse.Namespace) -> str:
    api_key = getattr(args, "api_key", None) or load_service_config()["api_key"]
    if not api_key:
        raise ValueError("--api-key もしくは環境変数 PT_API_KEY を指定してください。")
    return str(api_key)


def _load_editor(args: argparse.Namespace) -> InteractiveEditor:
    path: Path = args.document
    if not path.exists():
        raise FileNotFoundError(f"ファイルが見つかりません: {path}")
    with path.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    document = document_from_payload(DocumentModel.model_validate(raw))
    return InteractiveEditor(document, ignore_no_replacement=args.ignore_no_replacement)


def _finish(args: argparse.Namespace, text: str, payload: dict[str, Any]) -> CommandResult:
    output: Path | None = getattr(args, "output", None)
    if output is None:
        return CommandResult(text=text, payload=payload)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return CommandResult(text=text, payload=payload, output_path=output)


def _handle_apply_command(args: argparse.Namespace) -> CommandResult:
    editor = _load_editor(args)
    applied = editor.apply_all(skip_suggestions=args.skip_suggestions)
    logger.info("%d 件の変換を適用しました。", applied)
    return _finish(args, editor.current_text(), editor.snapshot().dump())


def _describe(editor: InteractiveEditor, transform: Transformation) -> str:
    sentence = editor.sentence_of(transform)
    label = " (提案)" if transform.is_suggestion else ""
    affected = editor.affected_text(transform).strip() or "∅"
    added = editor.added_text(transform).strip() or "∅"
    return f"[文 {sentence.sentence_index} / #{transform.transform_index}]{label} {affected} -> {added}"


def review_session(
    editor: InteractiveEditor,
    *,
    input_fn: InputFn = input,
    output_fn: Callable[[str], None] = print,
) -> InteractiveEditor:
    """利用可能な変換を順に提示し、承認/却下/取り消しを対話的に受け付ける。"""

    skipped: set[int] = set()
    while True:
        transform = next(
            (t for t in editor.available_transforms if t.transform_index not in skipped),
            None,
        )
        if transform is None:
            break
        output_fn(_describe(editor, transform))
        answer = input_fn("[a]ccept / [r]eject / [u]ndo / [n]ext / [q]uit > ").strip().lower()
        if answer in {"a", "accept"}:
            editor.accept_correction(transform)
        elif answer in {"r", "reject"}:
            editor.reject_correction(transform)
        elif answer in {"u", "undo"}:
            if not editor.undo_last():
                output_fn("取り消せる操作がありません。")
        elif answer in {"n", "next"}:
            skipped.add(transform.transform_index)  # type: ignore[arg-type]
        elif answer in {"q", "quit"}:
            break
        else:
            output_fn(f"不明な入力です: {answer}")
    return editor


def _handle_review_command(args: argparse.Namespace) -> CommandResult:
    editor = review_session(_load_editor(args))
    return _finish(args, editor.current_text(), editor.snapshot().dump())


def _handle_submit_command(args: argparse.Namespace) -> CommandResult:
    if args.file is not None:
        text = args.file.read_text(encoding="utf-8")
    else:
        text = args.text
    options = ClientOptions.from_env()
    if args.app_key:
        options = options.update(app_key=args.app_key)
    client = CorrectionServiceClient(options)
    document = client.submit_job(text, _resolve_api_key(args))
    payload = document_to_payload(document).dump()
    return _finish(args, document.corrected or text, payload)


def _handle_usage_command(args: argparse.Namespace) -> CommandResult:
    client = CorrectionServiceClient(ClientOptions.from_env())
    usage = client.get_usage(_resolve_api_key(args))
    return _finish(args, json.dumps(usage, ensure_ascii=False, indent=2), usage)


def _validate_submit_args(args: argparse.Namespace) -> None:
    if not (args.text or args.file):
        raise ValueError("テキストもしくは --file のいずれかを指定してください。")


_SUBCOMMAND_SPECS: tuple[SubcommandSpec, ...] = (
    SubcommandSpec(
        name="apply",
        help="保存済みの補正結果に利用可能な変換をすべて適用する",
        configure=_configure_apply_parser,
        handler=_handle_apply_command,
        aliases=("apply-all",),
    ),
    SubcommandSpec(
        name="review",
        help="補正結果を 1 件ずつ確認して承認/却下する",
        configure=_configure_review_parser,
        handler=_handle_review_command,
    ),
    SubcommandSpec(
        name="submit",
        help="テキストを補正サービスへ送信し結果を保存する",
        configure=_configure_submit_parser,
        handler=_handle_submit_command,
        validators=(_validate_submit_args,),
    ),
    SubcommandSpec(
        name="usage",
        help="API の利用状況を表示する",
        configure=_configure_usage_parser,
        handler=_handle_usage_command,
    ),
)

_SUBCOMMAND_MAP: dict[str, SubcommandSpec] = {}
for spec in _SUBCOMMAND_SPECS:
    _SUBCOMMAND_MAP[spec.name] = spec
    for alias in spec.aliases:
        _SUBCOMMAND_MAP[alias] = spec


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """CLI引数を定義して解析する。"""

    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(description="補正結果を対話的に適用するCLI")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True
    shared_parent = _build_shared_parent_parser()

    for spec in _SUBCOMMAND_SPECS:
        subparser = subparsers.add_parser(
            spec.name,
            parents=[shared_parent],
            help=spec.help,
            description=spec.description or spec.help,
            aliases=list(spec.aliases),
        )
        spec.configure(subparser)

    return parser.parse_args(argv)


def run_cli(args: argparse.Namespace) -> CommandResult:
    """コマンド引数を受け取り、対応するサブコマンドを実行する。"""

    setup_logging(args.log_level)

    spec = _SUBCOMMAND_MAP.get(args.command)
    if spec is None:
        raise RuntimeError(f"未対応のコマンドです: {args.command}")
    for validator in spec.validators:
        validator(args)
    return spec.handler(args)


def main(argv: Sequence[str] | None = None) -> None:
    """エントリーポイント。実行結果を標準出力へ流す。"""

    args = parse_args(argv)

    try:
        result = run_cli(args)
    except Exception as exc:  # noqa: BLE001 - CLIからはエラーをそのまま通知する
        raise SystemExit(f"{args.command} に失敗しました: {exc}") from exc

    if result.output_path is not None:
        print(f"結果を書き出しました: {result.output_path}")
        return
    if result.text is not None:
        print(result.text)


if __name__ == "__main__":
    main()
