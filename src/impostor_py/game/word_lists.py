"""Built-in word categories (Spanish)."""

from __future__ import annotations

from typing import Any


def _entry(word: str, similar: str, easy: str, hard: str) -> dict[str, Any]:
    return {"word": word, "similar": similar, "clues": {"easy": easy, "hard": hard}}


DEFAULT_CATEGORIES: list[dict[str, Any]] = [
    {
        "id": "animales",
        "name": "Animales",
        "words": [
            _entry("perro", "lobo", "Mejor amigo del hombre", "Ladra"),
            _entry("gato", "tigre", "Mascota que maúlla", "Siete vidas"),
            _entry("elefante", "rinoceronte", "Tiene trompa", "Memoria"),
            _entry("león", "tigre", "Rey de la selva", "Melena"),
            _entry("tigre", "león", "Felino con rayas", "Bengala"),
            _entry("jirafa", "camello", "Cuello muy largo", "Manchas"),
            _entry("cebra", "caballo", "Caballo a rayas", "Sabana"),
            _entry("mono", "gorila", "Come plátanos", "Rama"),
            _entry("oso", "panda", "Hiberna en invierno", "Miel"),
            _entry("lobo", "perro", "Aúlla a la luna", "Manada"),
        ],
    },
    {
        "id": "comida",
        "name": "Comida",
        "words": [
            _entry("pizza", "lasaña", "Se corta en triángulos", "Italia"),
            _entry("hamburguesa", "sandwich", "Carne entre panes", "Parrilla"),
            _entry("tacos", "burrito", "Tortilla doblada", "Pastor"),
            _entry("sushi", "ramen", "Arroz y pescado crudo", "Palillos"),
            _entry("pasta", "pizza", "Se hierve en agua", "Salsa"),
            _entry("helado", "pastel", "Postre frío", "Cono"),
            _entry("ensalada", "sopa", "Plato de hojas verdes", "Aderezo"),
            _entry("sopa", "ensalada", "Se come con cuchara", "Caldo"),
            _entry("sandwich", "hamburguesa", "Dos rebanadas de pan", "Almuerzo"),
            _entry("burrito", "tacos", "Tortilla enrollada", "Frijoles"),
        ],
    },
    {
        "id": "deportes",
        "name": "Deportes",
        "words": [
            _entry("fútbol", "rugby", "Se juega con los pies", "Portería"),
            _entry("basketball", "voleibol", "Se encesta en un aro", "Rebote"),
            _entry("tenis", "bádminton", "Raqueta y pelota amarilla", "Red"),
            _entry("voleibol", "basketball", "Se pasa sobre la red", "Arena"),
            _entry("natación", "buceo", "Deporte en la piscina", "Brazada"),
            _entry("atletismo", "maratón", "Correr y saltar", "Pista"),
            _entry("boxeo", "lucha", "Guantes y ring", "Asalto"),
            _entry("ciclismo", "motociclismo", "Se practica en bicicleta", "Pedal"),
            _entry("golf", "minigolf", "Palos y hoyos", "Green"),
            _entry("hockey", "patinaje", "Disco y palos", "Hielo"),
        ],
    },
    {
        "id": "profesiones",
        "name": "Profesiones",
        "words": [
            _entry("doctor", "enfermero", "Cura enfermedades", "Bata"),
            _entry("ingeniero", "arquitecto", "Diseña máquinas y puentes", "Cálculo"),
            _entry("profesor", "director", "Enseña en la escuela", "Pizarra"),
            _entry("chef", "panadero", "Cocina en un restaurante", "Gorro"),
            _entry("policía", "detective", "Hace cumplir la ley", "Placa"),
            _entry("bombero", "rescatista", "Apaga incendios", "Manguera"),
            _entry("abogado", "juez", "Defiende en un juicio", "Toga"),
            _entry("arquitecto", "ingeniero", "Diseña edificios", "Planos"),
            _entry("programador", "diseñador", "Escribe código", "Teclado"),
            _entry("artista", "músico", "Crea obras de arte", "Pincel"),
        ],
    },
    {
        "id": "paises",
        "name": "Países",
        "words": [
            _entry("México", "Guatemala", "Tierra de tacos y mariachi", "Azteca"),
            _entry("España", "Portugal", "Tierra del flamenco", "Tapas"),
            _entry("Argentina", "Uruguay", "Tierra del tango", "Asado"),
            _entry("Brasil", "Portugal", "Tierra de la samba", "Carnaval"),
            _entry("Francia", "Bélgica", "Tiene la Torre Eiffel", "Baguette"),
            _entry("Italia", "Grecia", "Tiene forma de bota", "Coliseo"),
            _entry("Japón", "Corea", "Tierra del sol naciente", "Samurái"),
            _entry("Alemania", "Austria", "Tierra de la cerveza y salchichas", "Berlín"),
            _entry("China", "Japón", "Tiene una gran muralla", "Dragón"),
            _entry("India", "Pakistán", "Tiene el Taj Mahal", "Especias"),
        ],
    },
    {
        "id": "objetos",
        "name": "Objetos",
        "words": [
            _entry("silla", "sofá", "Sirve para sentarse", "Respaldo"),
            _entry("mesa", "escritorio", "Se come sobre ella", "Patas"),
            _entry("lámpara", "vela", "Da luz en la noche", "Bombilla"),
            _entry("libro", "revista", "Tiene páginas para leer", "Capítulo"),
            _entry("reloj", "calendario", "Marca la hora", "Manecillas"),
            _entry("teléfono", "tablet", "Sirve para llamar", "Pantalla"),
            _entry("computadora", "tablet", "Tiene teclado y monitor", "Procesador"),
            _entry("bolígrafo", "lápiz", "Escribe con tinta", "Tapa"),
            _entry("llave", "candado", "Abre puertas", "Cerradura"),
            _entry("botella", "vaso", "Guarda líquidos", "Tapón"),
        ],
    },
]
