"""Handler for 'boardsync init'."""

from boardsync.cli._common import ensure_store, error, output_json, state_dir
from boardsync.errors import SyncFailure
from boardsync.gateway.git import GitGateway
from boardsync.model.board import create_board


def init_board(args) -> int:
    """Create a board in the state directory and register it in the store."""
    state = state_dir(args)
    boards = state.load_boards() if state.exists() else []

    existing = next((b for b in boards if b.id == args.board), None)
    if existing is not None:
        if args.json:
            output_json({"board": existing.id, "columns": existing.column_ids, "created": False})
        else:
            print(f"Board '{existing.id}' already initialized in {state.path}")
        return 0

    try:
        board = create_board(args.board, name=args.name or args.board, template=args.template)
    except ValueError as e:
        error(str(e), args.json)

    repo_path = ensure_store(args.remote)
    try:
        GitGateway(repo_path).update_board_index(board.id, board.index.to_dict())
    except SyncFailure as e:
        error(f"could not register board in {repo_path}: {e}", args.json)

    state.save_boards(boards + [board])

    if args.json:
        output_json({"board": board.id, "columns": board.column_ids, "created": True})
    else:
        print(f"Initialized board '{board.id}' in {state.path}")
        print(f"Columns: {', '.join(board.column_ids)}")
    return 0
