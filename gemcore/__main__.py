from gemcore.cli import main

main()
