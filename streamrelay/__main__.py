from streamrelay.cli.main import main


main()
