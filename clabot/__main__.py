from clabot.cli import main

main()
