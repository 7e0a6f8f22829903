from codpay import create_app

app = create_app()
