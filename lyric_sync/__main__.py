from lyric_sync.cli import main

main()
