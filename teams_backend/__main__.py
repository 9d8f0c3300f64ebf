from teams_backend.app import main

main()
