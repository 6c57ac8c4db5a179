from ipwatch.cli import main

main(prog_name="ipwatch")
