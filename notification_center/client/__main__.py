from notification_center.client.watch import main

if __name__ == "__main__":
    main()
