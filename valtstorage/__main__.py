from valtstorage.cli import main

main()
