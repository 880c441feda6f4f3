"""Shared fixtures and sample applications for the test suite."""

import json
from datetime import datetime, timezone

import pytest

from app_analyzer import config as analyzer_config
from app_analyzer.pattern_analyzer import PatternAnalyzer
from app_analyzer.schema import AnalysisInput, InputFile
from architecture_recommender import config as recommender_config
from architecture_recommender.catalog import shared_catalog_cache


FIXED_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_input(files: dict, description: str = None) -> AnalysisInput:
    """Build an AnalysisInput from a {name: content} mapping."""
    return AnalysisInput(
        description=description,
        files=[InputFile(name=name, content=content) for name, content in files.items()],
    )


def package_json(dependencies: dict, scripts: dict = None, name: str = "sample-app") -> str:
    data = {"name": name, "dependencies": dependencies}
    if scripts:
        data["scripts"] = scripts
    return json.dumps(data, indent=2)


# =============================================================================
# Sample applications
# =============================================================================

REACT_APP = {
    "package.json": package_json(
        {"react": "^18.2.0", "react-dom": "^18.2.0"},
        {"start": "react-scripts start", "build": "react-scripts build"},
        name="todo-app",
    ),
    "src/App.jsx": (
        'import React, { useState, useEffect } from "react";\n'
        "export default function App() {\n"
        "  const [count, setCount] = useState(0);\n"
        '  return <div className="app">{count}</div>;\n'
        "}\n"
    ),
    "src/index.jsx": (
        'import React from "react";\n'
        'import { createRoot } from "react-dom/client";\n'
        'import App from "./App";\n'
        'createRoot(document.getElementById("root")).render(<App />);\n'
    ),
}

VUE_APP = {
    "package.json": package_json(
        {"vue": "^3.3.0", "vue-router": "^4.2.0"},
        {"build": "vite build"},
        name="vue-shop",
    ),
    "src/App.vue": (
        "<template>\n"
        '  <div id="app"><p v-if="ready">{{ message }}</p></div>\n'
        "</template>\n"
        "<script setup>\n"
        'import { ref } from "vue";\n'
        'const message = ref("Hello");\n'
        "const ready = ref(true);\n"
        "</script>\n"
    ),
    "src/main.js": (
        'import { createApp } from "vue";\n'
        'import App from "./App.vue";\n'
        'createApp(App).mount("#app");\n'
    ),
}

NEXT_APP = {
    "package.json": package_json(
        {"next": "^14.0.0", "react": "^18.2.0", "react-dom": "^18.2.0"},
        {"dev": "next dev", "build": "next build"},
        name="blog",
    ),
    "pages/index.js": (
        'import Head from "next/head";\n'
        "export async function getServerSideProps() {\n"
        "  return { props: { time: Date.now() } };\n"
        "}\n"
        "export default function Home({ time }) {\n"
        "  return <main><Head><title>Home</title></Head>{time}</main>;\n"
        "}\n"
    ),
    "next.config.js": "module.exports = { reactStrictMode: true };\n",
}

EXPRESS_API = {
    "package.json": package_json(
        {"express": "^4.18.2", "cors": "^2.8.5"},
        {"start": "node server.js"},
        name="users-api",
    ),
    "server.js": (
        'const express = require("express");\n'
        'const cors = require("cors");\n'
        "const app = express();\n"
        "app.use(cors());\n"
        'app.get("/api/users", (req, res) => {\n'
        "  res.json([]);\n"
        "});\n"
        "app.listen(3000);\n"
    ),
}

FLASK_API = {
    "requirements.txt": "flask==3.0.0\ngunicorn==21.2.0\n",
    "app.py": (
        "from flask import Flask, jsonify\n"
        "\n"
        "app = Flask(__name__)\n"
        "\n"
        '@app.route("/api/health")\n'
        "def health():\n"
        '    return jsonify({"status": "ok"})\n'
        "\n"
        'if __name__ == "__main__":\n'
        "    app.run()\n"
    ),
}

STATIC_SITE = {
    "index.html": (
        "<!DOCTYPE html>\n"
        "<html>\n"
        '<head><link rel="stylesheet" href="style.css"></head>\n'
        '<body><h1>Portfolio</h1><script src="script.js"></script></body>\n'
        "</html>\n"
    ),
    "style.css": "body { font-family: sans-serif; }\n",
    "script.js": 'document.querySelector("h1").addEventListener("click", () => alert("hi"));\n',
}

def static_site(script_name: str) -> dict:
    """Markup, a stylesheet and one plain script under `script_name`."""
    return {
        "index.html": (
            "<!DOCTYPE html>\n"
            "<html>\n"
            '<head><link rel="stylesheet" href="style.css"></head>\n'
            f'<body><h1>Portfolio</h1><script src="{script_name}"></script></body>\n'
            "</html>\n"
        ),
        "style.css": "h1 { color: navy; }\n",
        script_name: 'document.title = "Portfolio";\n',
    }


# One manifest plus one entry file per framework
MINIMAL_APPS = {
    "react": {
        "package.json": package_json({"react": "^18.2.0"}),
        "src/App.jsx": (
            'import React, { useState } from "react";\n'
            "export default function App() {\n"
            "  const [on, setOn] = useState(false);\n"
            "  return <button onClick={() => setOn(!on)}>{on ? 1 : 0}</button>;\n"
            "}\n"
        ),
    },
    "vue": {
        "package.json": package_json({"vue": "^3.3.0"}),
        "src/App.vue": (
            "<template>\n"
            "  <p>{{ greeting }}</p>\n"
            "</template>\n"
            "<script setup>\n"
            'import { ref } from "vue";\n'
            'const greeting = ref("Hello");\n'
            "</script>\n"
        ),
    },
    "angular": {
        "package.json": package_json({"@angular/core": "^17.0.0"}),
        "src/app/app.component.ts": (
            'import { Component, OnInit } from "@angular/core";\n'
            "\n"
            '@Component({ selector: "app-root", template: "<h1>{{ title }}</h1>" })\n'
            "export class AppComponent implements OnInit {\n"
            '  title = "";\n'
            '  ngOnInit() { this.title = "Dashboard"; }\n'
            "}\n"
        ),
    },
    "nextjs": {
        "package.json": package_json({"next": "^14.0.0"}),
        "pages/index.js": (
            "export async function getStaticProps() {\n"
            "  return { props: { posts: [] } };\n"
            "}\n"
            "export default function Home({ posts }) {\n"
            "  return <main>{posts.length} posts</main>;\n"
            "}\n"
        ),
    },
    "nodejs": {
        "package.json": package_json({"express": "^4.18.2"}),
        "index.js": (
            'const express = require("express");\n'
            "const app = express();\n"
            'app.get("/health", (req, res) => res.send("ok"));\n'
            "app.listen(8080);\n"
        ),
    },
    "python": {
        "requirements.txt": "flask==3.0.0\n",
        "app.py": (
            "from flask import Flask\n"
            "\n"
            "app = Flask(__name__)\n"
            "\n"
            '@app.route("/")\n'
            "def index():\n"
            '    return "ok"\n'
        ),
    },
}

FULLSTACK_APP = {
    "client/package.json": package_json(
        {"react": "^18.2.0", "react-dom": "^18.2.0", "axios": "^1.6.0"},
        name="client",
    ),
    "client/src/App.jsx": (
        'import React, { useState, useEffect } from "react";\n'
        'import axios from "axios";\n'
        "export default function App() {\n"
        "  const [items, setItems] = useState([]);\n"
        '  useEffect(() => { axios.get("/api/items").then(r => setItems(r.data)); }, []);\n'
        '  return <ul className="items">{items.map(i => <li key={i.id}>{i.name}</li>)}</ul>;\n'
        "}\n"
    ),
    "server/package.json": package_json({"express": "^4.18.2", "cors": "^2.8.5"}, name="server"),
    "server/index.js": (
        'const express = require("express");\n'
        'const cors = require("cors");\n'
        "const app = express();\n"
        "app.use(cors());\n"
        'app.get("/api/items", (req, res) => res.json([]));\n'
        "app.listen(4000);\n"
    ),
}

MONGOOSE_API = {
    "package.json": package_json({"express": "^4.18.2", "mongoose": "^7.0.0"}, name="notes-api"),
    "db.js": (
        'const mongoose = require("mongoose");\n'
        "mongoose.connect(process.env.MONGODB_URI);\n"
        'const User = mongoose.model("User", new mongoose.Schema({ name: String }));\n'
        'User.findOne({ name: "a" });\n'
    ),
}

SEQUELIZE_API = {
    "package.json": package_json(
        {"express": "^4.18.2", "sequelize": "^6.35.0", "pg": "^8.11.0"},
        name="orders-api",
    ),
    "models.js": (
        'const { Sequelize, DataTypes } = require("sequelize");\n'
        'const sequelize = new Sequelize(process.env.DATABASE_URL, { dialect: "postgres" });\n'
        'const User = sequelize.define("User", { email: DataTypes.STRING });\n'
    ),
}

JWT_AUTH_API = {
    "package.json": package_json(
        {"express": "^4.18.2", "jsonwebtoken": "^9.0.0", "bcrypt": "^5.1.0"},
        name="auth-api",
    ),
    "auth.js": (
        'const jwt = require("jsonwebtoken");\n'
        'const bcrypt = require("bcrypt");\n'
        "\n"
        "async function login(req, res) {\n"
        "  const user = await findUser(req.body.email);\n"
        "  const ok = await bcrypt.compare(req.body.password, user.passwordHash);\n"
        "  res.json({ token: jwt.sign({ id: user.id }, process.env.JWT_SECRET) });\n"
        "}\n"
    ),
}


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def reset_configs():
    """Keep configuration loaded by one test from leaking into the next."""
    analyzer_config.reset_config()
    recommender_config.reset_config()
    yield
    analyzer_config.reset_config()
    recommender_config.reset_config()


@pytest.fixture
def analyzer():
    """Analyzer with a fixed clock."""
    return PatternAnalyzer(clock=lambda: FIXED_TIME)


@pytest.fixture
def analyze(analyzer):
    """Analyze a {name: content} mapping."""
    def _analyze(files: dict, description: str = None):
        return analyzer.analyze_application(make_input(files, description))
    return _analyze


@pytest.fixture
def catalog():
    """The packaged architecture catalog."""
    return shared_catalog_cache().get()


@pytest.fixture
def write_tree(tmp_path):
    """Write a {name: content} mapping below a temporary directory."""
    def _write(files: dict):
        root = tmp_path / "app"
        for name, content in files.items():
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root
    return _write
