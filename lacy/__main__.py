from lacy.cli.app import main

main()
