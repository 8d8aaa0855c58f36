import azure.functions as func

from content_ranking_service.blueprints import recommendations_bp, search_bp

app = func.FunctionApp()

app.register_blueprint(search_bp.bp)
app.register_blueprint(recommendations_bp.bp)
