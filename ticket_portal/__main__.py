from ticket_portal.app import main

main()
