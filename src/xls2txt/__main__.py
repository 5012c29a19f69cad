from xls2txt import main

main()
