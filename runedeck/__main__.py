from runedeck.main import main

main()
