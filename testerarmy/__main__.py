from testerarmy.main import app

app(prog_name="testerarmy")
