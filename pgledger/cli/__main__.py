from pgledger.cli import pgledger

pgledger(prog_name="pgledger")
