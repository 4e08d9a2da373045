from src.project_hub.project_hub import create_app

app = create_app()

if __name__ == '__main__':
    app.run(debug=app.config["DEBUG"])
