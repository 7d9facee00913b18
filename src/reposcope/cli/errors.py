"""reposcope rich error messages.

Every error shown to the user says what went wrong and what to do about it.

Usage:
    from reposcope.cli.errors import err_no_api_key
    console.print(err_no_api_key("openai"))
    raise typer.Exit(1)
"""

from __future__ import annotations

_ENV_MAP = {
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
}


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_var = _ENV_MAP.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str = ".reposcope.db") -> str:
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  reposcope analyze PATH --repo owner/name"
    )


def err_invalid_repo(repo: str) -> str:
    return (
        f"[red]Error:[/] Invalid repository '{repo}'.\n"
        "  Use owner/name or https://github.com/owner/name"
    )


def err_path_not_found(path: str) -> str:
    return (
        f"[red]Error:[/] Repository checkout not found: '{path}'\n"
        "  Pass the path of a local clone."
    )


def err_collection_not_found(repo_id: str) -> str:
    return (
        f"[yellow]No embeddings stored for[/] '{repo_id}'.\n"
        f"  Run:  reposcope analyze PATH --repo {repo_id}"
    )


def err_config(message: str) -> str:
    return f"[red]Config error:[/] {message}"
