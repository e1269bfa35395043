# cli.py
import json
import os
from typing import Any, Dict, List, Optional

import httpx
import typer

app = typer.Typer(name="ledger", help="Asset Ledger Command-Line Interface")

DEFAULT_GATEWAY_URL = "http://localhost:8000"

UrlOption = typer.Option(
    None, "--url", "-u", help="Base URL of the ledger node. Defaults to LEDGER_GATEWAY_URL."
)


def _gateway_url(url: Optional[str]) -> str:
    return (url or os.getenv("LEDGER_GATEWAY_URL") or DEFAULT_GATEWAY_URL).rstrip("/")


def _request(method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Any:
    try:
        response = httpx.request(method, url, json=payload, timeout=30.0)
    except httpx.HTTPError as e:
        typer.secho(f"Error: could not reach {url}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if response.is_error:
        try:
            body = response.json()
        except ValueError:
            body = response.text
        detail = body.get("detail", body) if isinstance(body, dict) else body
        typer.secho(f"Error {response.status_code}: {json.dumps(detail, ensure_ascii=False)}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return response.json()


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


@app.command("invoke")
def invoke(
    contract: str = typer.Argument(..., help="Contract name, e.g. 'asset'."),
    function: str = typer.Argument(..., help="Transaction name, e.g. 'CreateAsset'."),
    args: Optional[List[str]] = typer.Argument(None, help="Transaction arguments, in order."),
    url: Optional[str] = UrlOption,
):
    """
    Submits a transaction; its writes are committed to the ledger.
    """
    payload = {"contract": contract, "function": function, "args": args or []}
    _echo_json(_request("POST", f"{_gateway_url(url)}/api/ledger/transactions/submit", payload))


@app.command("query")
def query(
    contract: str = typer.Argument(..., help="Contract name, e.g. 'asset'."),
    function: str = typer.Argument(..., help="Transaction name, e.g. 'ReadAssets'."),
    args: Optional[List[str]] = typer.Argument(None, help="Transaction arguments, in order."),
    url: Optional[str] = UrlOption,
):
    """
    Evaluates a transaction without committing anything.
    """
    payload = {"contract": contract, "function": function, "args": args or []}
    _echo_json(_request("POST", f"{_gateway_url(url)}/api/ledger/transactions/evaluate", payload))


@app.command("contracts")
def contracts(url: Optional[str] = UrlOption):
    """
    Lists the installed contracts and their transactions.
    """
    for contract in _request("GET", f"{_gateway_url(url)}/api/ledger/contracts"):
        typer.secho(contract["name"], fg=typer.colors.BLUE, bold=True)
        for tx in contract["transactions"]:
            params = ", ".join(p["name"] for p in tx["parameters"])
            aliases = f" (aka {', '.join(tx['aliases'])})" if tx["aliases"] else ""
            typer.echo(f"  [{tx['mode']}] {tx['name']}({params}){aliases}")


if __name__ == "__main__":
    app()
