from amdcompact.cli import app

app(prog_name="amdcompact")
