from kee.main import app

app(prog_name="kee")
