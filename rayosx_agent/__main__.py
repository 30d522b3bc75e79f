from rayosx_agent.cli.main import main

main()
