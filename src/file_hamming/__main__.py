from file_hamming.cli.main import main

if __name__ == "__main__":
    main()
