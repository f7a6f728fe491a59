from form_rules.cli import app

app()
