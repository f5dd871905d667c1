import os
from promptspace import create_app

# Create the Flask app instance using the application factory
# It will load the config based on FLASK_CONFIG or default to 'development'
config_name = os.getenv('FLASK_CONFIG') or 'default'
app = create_app(config_name)

if __name__ == '__main__':
    # For production, use a proper WSGI server like Gunicorn or Waitress.
    port = app.config.get('PORT', 3000)
    print(f"Prompt marketplace backend running on http://localhost:{port}")
    print(f"API docs available at: http://localhost:{port}/api/docs/")
    app.run(port=port, threaded=True)
